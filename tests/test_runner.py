"""Full run wiring: connect, allowance, loop."""

from __future__ import annotations

import pytest

from cashplus_autosub.errors import AuthorizationError, EndpointUnavailableError
from cashplus_autosub.evm.abi import MAX_UINT256
from cashplus_autosub.runner import AutosubRunner

from tests.factories import make_config, make_params
from tests.mocks import TEST_ADDRESS, MockLedger


def _runner(ledger, sleeper, **cfg_overrides) -> AutosubRunner:
    return AutosubRunner(
        make_config(**cfg_overrides),
        client_factory=lambda cfg: ledger,
        sleep=sleeper,
    )


async def test_full_run_approves_before_first_subscribe(runner, ledger, sleeper):
    summary = await runner.start(make_params(loop_count=3))

    assert summary.succeeded == 3
    assert ledger.call_log[:4] == ["chain_id", "decimals", "allowance", "approve"]
    assert ledger.call_log.count("approve") == 1
    assert ledger.call_log.index("approve") < ledger.call_log.index("subscribe")
    assert ledger.approve_calls[0][2] == MAX_UINT256
    assert runner.token.decimals == 6
    assert ledger.closed


async def test_sufficient_allowance_goes_straight_to_loop(sleeper):
    ledger = MockLedger(allowance=10**12)

    summary = await _runner(ledger, sleeper).start(make_params(loop_count=2))

    assert ledger.approve_calls == []
    assert summary.attempted == 2
    assert sleeper.calls == [1.0]


async def test_unreachable_endpoint_runs_nothing_else(sleeper):
    ledger = MockLedger(connect_failures=100)
    runner = _runner(ledger, sleeper)

    with pytest.raises(EndpointUnavailableError):
        await runner.start(make_params())

    assert ledger.chain_id_calls == 8
    assert ledger.decimals_calls == 0
    assert ledger.allowance_calls == 0
    assert ledger.approve_calls == []
    assert ledger.subscribe_calls == []
    assert runner.guard is None
    assert runner.orchestrator is None


async def test_failed_approval_aborts_before_loop(sleeper):
    ledger = MockLedger(approve_status=0)
    runner = _runner(ledger, sleeper)

    with pytest.raises(AuthorizationError):
        await runner.start(make_params())

    assert ledger.subscribe_calls == []
    assert runner.orchestrator is None
    assert ledger.closed


async def test_subscribe_value_is_sent_in_wei(sleeper):
    ledger = MockLedger(allowance=10**12)

    await _runner(ledger, sleeper, subscribe_value="0.001").start(make_params(loop_count=1))

    assert ledger.subscribe_calls[0].value == 10**15


async def test_token_decimals_drive_amount_precision(sleeper):
    ledger = MockLedger(decimals=18, allowance=MAX_UINT256)

    summary = await _runner(ledger, sleeper).start(make_params(loop_count=2))

    for result in summary.results:
        assert len(result.amount.split(".")[1]) == 18


async def test_snapshot_reads_without_submitting(runner, ledger):
    snap = await runner.snapshot()

    assert snap.address == TEST_ADDRESS
    assert snap.chain_id == 56
    assert snap.token_decimals == 6
    assert snap.token_balance == 100_000_000
    assert snap.allowance == 0
    assert ledger.approve_calls == []
    assert ledger.subscribe_calls == []
    assert ledger.closed
