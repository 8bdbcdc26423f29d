import pytest
from web3.exceptions import TimeExhausted

from somnia_auto.submitter import (
    ErrorClass, RetryingSubmitter, SubmitState, backoff_delay, classify_error,
)

from conftest import WaitError, ok, reverted


class FixedRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def skeleton(wallet):
    return {
        "from": wallet.address,
        "to": "0x9beaA0016c22B646Ac311Ab171270B0ECf23098F",
        "value": 0,
        "data": "0x",
        "gas": 100000,
        "gasPrice": 10 ** 9,
        "chainId": 50312,
    }


@pytest.mark.parametrize("msg", [
    "nonce too low",
    "{'code': -32000, 'message': 'Nonce Too Low'}",
    "transaction underpriced",
    "replacement transaction underpriced",
    "Transaction already imported",
    "transaction with the same hash was already imported",
    "already known",
])
def test_classify_nonce_or_price(msg):
    assert classify_error(Exception(msg)) is ErrorClass.RETRYABLE_NONCE_OR_PRICE


@pytest.mark.parametrize("msg", [
    "Transaction was not mined within 750 seconds",
    "Transaction HexBytes('0xab') is not in the chain after 180 seconds",
])
def test_classify_timeout(msg):
    assert classify_error(msg) is ErrorClass.RETRYABLE_TIMEOUT


@pytest.mark.parametrize("msg", ["insufficient funds for gas * price + value", "execution reverted", ""])
def test_classify_fatal(msg):
    assert classify_error(RuntimeError(msg)) is ErrorClass.FATAL


@pytest.mark.parametrize("attempt", [1, 2, 3, 4])
def test_backoff_bounds(attempt):
    lo_n = backoff_delay(ErrorClass.RETRYABLE_NONCE_OR_PRICE, attempt, FixedRng(0.0))
    hi_n = backoff_delay(ErrorClass.RETRYABLE_NONCE_OR_PRICE, attempt, FixedRng(0.999999))
    assert lo_n == 5 * 2 ** attempt
    assert 5 * 2 ** attempt <= hi_n < 10 * 2 ** attempt

    lo_t = backoff_delay(ErrorClass.RETRYABLE_TIMEOUT, attempt, FixedRng(0.0))
    hi_t = backoff_delay(ErrorClass.RETRYABLE_TIMEOUT, attempt, FixedRng(0.999999))
    assert lo_t == 10 * 2 ** attempt
    assert 10 * 2 ** attempt <= hi_t < 20 * 2 ** attempt


def test_success_first_attempt(w3, submitter, wallet, stats, sleeper):
    receipt = submitter.submit(skeleton(wallet), wallet, stats, "Swap")
    assert receipt["status"] == 1
    assert (stats.pending, stats.success, stats.failed) == (0, 1, 0)
    assert len(stats.times) == 1
    assert w3.eth.nonce_reads == ["pending"]
    assert sleeper.calls == []
    assert submitter.last_state is SubmitState.CONFIRMED_SUCCESS


def test_all_attempts_retryable_exhausts_budget(w3, submitter, wallet, stats, sleeper, recorder):
    w3.eth.outcomes = [ValueError("nonce too low") for _ in range(5)]
    pending_before = stats.pending

    assert submitter.submit(skeleton(wallet), wallet, stats, "Approval") is None

    assert len(w3.eth.sent) == 5
    assert len(w3.eth.nonce_reads) == 5
    assert stats.failed == 1 and stats.success == 0
    assert stats.pending == pending_before
    # sleeps only between attempts
    assert len(sleeper.calls) == 4
    for n, delay in enumerate(sleeper.calls, start=1):
        assert 5 * 2 ** n <= delay < 10 * 2 ** n
    assert submitter.last_state is SubmitState.RETRIES_EXHAUSTED
    assert any("failed after 5 retries" in m for m in recorder.logs)


def test_revert_is_never_retried(w3, submitter, wallet, stats, sleeper):
    w3.eth.outcomes = [reverted(), ok()]
    assert submitter.submit(skeleton(wallet), wallet, stats, "Swap") is None
    assert len(w3.eth.sent) == 1
    assert (stats.pending, stats.success, stats.failed) == (0, 0, 1)
    assert sleeper.calls == []
    assert submitter.last_state is SubmitState.CONFIRMED_REVERTED


def test_fatal_error_returns_immediately(w3, submitter, wallet, stats, sleeper, recorder):
    w3.eth.outcomes = [ValueError("insufficient funds")]
    assert submitter.submit(skeleton(wallet), wallet, stats, "Swap") is None
    assert len(w3.eth.sent) == 1
    assert sleeper.calls == []
    assert (stats.pending, stats.failed) == (0, 1)
    assert submitter.last_state is SubmitState.FATAL_FAILED
    assert recorder.count("✖", "panels") == 1


def test_timeout_then_success_rereads_nonce(w3, submitter, wallet, stats, sleeper):
    w3.eth.outcomes = [WaitError(TimeExhausted("Transaction HexBytes('0x01') is not in the chain after 180 seconds")), ok()]
    receipt = submitter.submit(skeleton(wallet), wallet, stats, "Swap")
    assert receipt is not None
    assert len(w3.eth.sent) == 2
    assert w3.eth.nonce_reads == ["pending", "pending"]
    assert len(sleeper.calls) == 1
    assert 20 <= sleeper.calls[0] < 40
    assert (stats.pending, stats.success, stats.failed) == (0, 1, 0)


def test_retry_then_revert_counts_one_failure(w3, submitter, wallet, stats):
    w3.eth.outcomes = [ValueError("transaction underpriced"), reverted()]
    assert submitter.submit(skeleton(wallet), wallet, stats, "Swap") is None
    assert (stats.pending, stats.success, stats.failed) == (0, 0, 1)


def test_custom_retry_budget(w3, reporter, settings, wallet, stats, sleeper):
    from dataclasses import replace
    sub = RetryingSubmitter(w3, reporter, replace(settings, max_retries=2), sleep=sleeper)
    w3.eth.outcomes = [ValueError("nonce too low")] * 3
    assert sub.submit(skeleton(wallet), wallet, stats, "Swap") is None
    assert len(w3.eth.sent) == 2
    assert len(sleeper.calls) == 1
