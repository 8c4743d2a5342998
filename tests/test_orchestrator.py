"""Submission loop: iteration isolation, delays and reporting."""

from __future__ import annotations

import random
import re

from cashplus_autosub.engine.orchestrator import RunState, SubmissionOrchestrator
from cashplus_autosub.models.records import Outcome

from tests.factories import CONTRACT_ADDRESS, TOKEN_ADDRESS, make_params, make_token
from tests.mocks import MockLedger, RecordingSleep


def _orchestrator(ledger, sleeper, decimals=6, **kwargs) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(
        ledger,
        CONTRACT_ADDRESS,
        make_token(decimals=decimals),
        rng=random.Random(42),
        sleep=sleeper,
        **kwargs,
    )


async def test_three_loops_with_fixed_delay(ledger, sleeper):
    """min=0.1 max=0.5 loops=3 delay=1..1 decimals=6."""
    orch = _orchestrator(ledger, sleeper, value_wei=0, gas_limit=400_000)

    summary = await orch.run(make_params("0.1", "0.5", 3, 1, 1))

    assert len(ledger.subscribe_calls) == 3
    assert sleeper.calls == [1.0, 1.0]
    assert summary.attempted == 3
    assert summary.succeeded == 3
    assert orch.state == RunState.DONE

    for result in summary.results:
        assert re.match(r"^\d+\.\d{6}$", result.amount)
        assert result.outcome == Outcome.CONFIRMED_SUCCESS
        assert result.status == 1
        assert result.block_number is not None

    for call, result in zip(ledger.subscribe_calls, summary.results):
        assert call.contract == CONTRACT_ADDRESS
        assert call.token == TOKEN_ADDRESS
        assert call.amount == result.amount_units
        assert call.value == 0
        assert call.gas_limit == 400_000
        assert 100_000 <= call.amount <= 500_000


async def test_confirmation_failure_does_not_stop_loop(sleeper):
    """Second of three subscribes throws while confirming."""
    ledger = MockLedger(fail_confirm_on={2})
    orch = _orchestrator(ledger, sleeper)

    summary = await orch.run(make_params(loop_count=3))

    assert len(ledger.subscribe_calls) == 3
    assert [r.outcome for r in summary.results] == [
        Outcome.CONFIRMED_SUCCESS,
        Outcome.SUBMISSION_ERROR,
        Outcome.CONFIRMED_SUCCESS,
    ]
    failed = summary.results[1]
    assert "receipt timeout" in failed.error
    assert failed.tx_hash is not None
    assert summary.errored == 1
    assert orch.state == RunState.DONE


async def test_send_failure_is_recorded_without_hash(sleeper):
    ledger = MockLedger(fail_submit_on={1})
    orch = _orchestrator(ledger, sleeper)

    summary = await orch.run(make_params(loop_count=2))

    first = summary.results[0]
    assert first.outcome == Outcome.SUBMISSION_ERROR
    assert first.tx_hash is None
    assert "insufficient funds" in first.error
    assert summary.results[1].success
    assert len(ledger.receipt_calls) == 1


async def test_every_iteration_failing_still_runs_full_count(sleeper):
    ledger = MockLedger(fail_submit_on={1, 2, 3, 4, 5})
    orch = _orchestrator(ledger, sleeper)

    summary = await orch.run(make_params(loop_count=5))

    assert summary.attempted == 5
    assert summary.errored == 5
    assert len(sleeper.calls) == 4


async def test_reverted_subscribe_is_confirmed_failure(sleeper):
    ledger = MockLedger(revert_on={1})
    orch = _orchestrator(ledger, sleeper)

    summary = await orch.run(make_params(loop_count=1))

    result = summary.results[0]
    assert result.outcome == Outcome.CONFIRMED_FAILURE
    assert result.status == 0
    assert summary.reverted == 1
    assert summary.total_units == 0


async def test_single_loop_never_sleeps(ledger, sleeper):
    orch = _orchestrator(ledger, sleeper)

    await orch.run(make_params(loop_count=1, delay_min=5, delay_max=10))

    assert sleeper.calls == []


async def test_delays_drawn_within_bounds(ledger):
    sleeper = RecordingSleep()
    orch = _orchestrator(ledger, sleeper)

    await orch.run(make_params(loop_count=20, delay_min=0.5, delay_max=2.0))

    assert len(sleeper.calls) == 19
    assert all(0.5 <= d <= 2.0 for d in sleeper.calls)
    assert len(set(sleeper.calls)) > 1


async def test_payment_value_and_gas_are_forwarded(ledger, sleeper):
    orch = _orchestrator(ledger, sleeper, value_wei=10**15, gas_limit=250_000)

    await orch.run(make_params(loop_count=2))

    assert {c.value for c in ledger.subscribe_calls} == {10**15}
    assert {c.gas_limit for c in ledger.subscribe_calls} == {250_000}


async def test_total_units_counts_only_successes(sleeper):
    ledger = MockLedger(fail_confirm_on={1})
    orch = _orchestrator(ledger, sleeper)

    summary = await orch.run(make_params(loop_count=3))

    expected = sum(r.amount_units for r in summary.results[1:])
    assert summary.total_units == expected
