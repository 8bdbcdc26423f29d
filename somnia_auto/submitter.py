# somnia_auto/submitter.py
"""
Sign, broadcast and confirm one logical transaction with a bounded retry budget.

Per call:  INIT -> SIGNING -> BROADCASTING -> one of
    CONFIRMED_SUCCESS | CONFIRMED_REVERTED | RETRY_WAIT | FATAL_FAILED | RETRIES_EXHAUSTED
RETRY_WAIT loops back to SIGNING with a freshly read pending nonce.

Only transient ordering/pricing races and receipt timeouts are retried.
A revert (receipt status 0) is final: the same calldata will revert again.
"""
import random
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from web3 import Web3

from .config import Settings
from .report import Reporter
from .stats import TxStats
from .util import get_logger, short, tx_hex

log = get_logger()


class ErrorClass(Enum):
    RETRYABLE_NONCE_OR_PRICE = "nonce_or_price"
    RETRYABLE_TIMEOUT = "timeout"
    FATAL = "fatal"


class SubmitState(Enum):
    INIT = "init"
    SIGNING = "signing"
    BROADCASTING = "broadcasting"
    RETRY_WAIT = "retry_wait"
    CONFIRMED_SUCCESS = "confirmed_success"
    CONFIRMED_REVERTED = "confirmed_reverted"
    FATAL_FAILED = "fatal_failed"
    RETRIES_EXHAUSTED = "retries_exhausted"


# first match wins, patterns are lower-case
ERROR_RULES: Tuple[Tuple[str, ErrorClass], ...] = (
    ("nonce too low", ErrorClass.RETRYABLE_NONCE_OR_PRICE),
    ("replacement transaction underpriced", ErrorClass.RETRYABLE_NONCE_OR_PRICE),
    ("transaction underpriced", ErrorClass.RETRYABLE_NONCE_OR_PRICE),
    ("transaction already imported", ErrorClass.RETRYABLE_NONCE_OR_PRICE),
    ("same hash was already imported", ErrorClass.RETRYABLE_NONCE_OR_PRICE),
    ("already known", ErrorClass.RETRYABLE_NONCE_OR_PRICE),  # geth wording
    ("transaction was not mined within", ErrorClass.RETRYABLE_TIMEOUT),
    ("is not in the chain after", ErrorClass.RETRYABLE_TIMEOUT),  # web3.py TimeExhausted
)

# seconds, [lo, hi) before the 2**attempt factor
BACKOFF_RANGES = {
    ErrorClass.RETRYABLE_NONCE_OR_PRICE: (5, 10),
    ErrorClass.RETRYABLE_TIMEOUT: (10, 20),
}


def classify_error(error) -> ErrorClass:
    msg = str(error).lower()
    for pattern, klass in ERROR_RULES:
        if pattern in msg:
            return klass
    return ErrorClass.FATAL


def backoff_delay(error_class: ErrorClass, attempt: int, rng=random) -> float:
    lo, hi = BACKOFF_RANGES[error_class]
    return (lo + rng.random() * (hi - lo)) * (2 ** attempt)


class RetryingSubmitter:
    def __init__(self, w3: Web3, reporter: Reporter, settings: Settings,
                 sleep: Callable[[float], None] = time.sleep, rng=random,
                 clock: Callable[[], float] = time.monotonic):
        self.w3 = w3
        self.reporter = reporter
        self.settings = settings
        self.max_retries = settings.max_retries
        self.sleep = sleep
        self.rng = rng
        self.clock = clock
        self.last_state = SubmitState.INIT

    def _enter(self, state: SubmitState, kind: str):
        self.last_state = state
        log.debug(f"{kind}: {state.value}")

    def submit(self, tx: dict, wallet, stats: TxStats, kind: str) -> Optional[dict]:
        """Send `tx` (every field but nonce set) from `wallet`. Returns the receipt or None."""
        r = self.reporter
        w = wallet.index
        start = self.clock()
        attempt = 0
        self._enter(SubmitState.INIT, kind)
        stats.begin()

        while attempt < self.max_retries:
            try:
                self._enter(SubmitState.SIGNING, kind)
                tx["nonce"] = self.w3.eth.get_transaction_count(wallet.address, "pending")
                r.info(f"Wallet {w} │ Sending {kind} Transaction (Attempt {attempt + 1}/{self.max_retries})...")
                signed = wallet.account.sign_transaction(tx)

                self._enter(SubmitState.BROADCASTING, kind)
                txh = self.w3.eth.send_raw_transaction(signed.raw_transaction)
                receipt = self.w3.eth.wait_for_transaction_receipt(txh, timeout=self.settings.receipt_timeout)
            except Exception as e:
                r.warn(f"Wallet {w} │ {kind} transaction error (Attempt {attempt + 1}): {e}")
                klass = classify_error(e)
                if klass is ErrorClass.FATAL:
                    self._enter(SubmitState.FATAL_FAILED, kind)
                    r.error(f"Error: Wallet {w} │ {kind} failed permanently after error: {e}",
                            panel=f"Wallet {w}: {kind} failed")
                    stats.failed_after_submit()
                    return None
                attempt += 1
                if attempt >= self.max_retries:
                    break
                self._enter(SubmitState.RETRY_WAIT, kind)
                delay = backoff_delay(klass, attempt, self.rng)
                reason = "due to timeout " if klass is ErrorClass.RETRYABLE_TIMEOUT else ""
                r.info(f"Wallet {w} │ Retrying {kind} {reason}in {delay:.0f} seconds...")
                self.sleep(delay)
                continue

            tx_hash = tx_hex(receipt["transactionHash"])
            if receipt["status"]:
                self._enter(SubmitState.CONFIRMED_SUCCESS, kind)
                stats.succeeded((self.clock() - start) * 1000)
                r.success(f"Success: Wallet {w} │ {kind} Tx: {self.settings.tx_url(tx_hash)}",
                          panel=f"Wallet {w}: {kind} confirmed {short(tx_hash)}")
                return receipt

            self._enter(SubmitState.CONFIRMED_REVERTED, kind)
            stats.failed_after_submit()
            r.error(f"Error: Wallet {w} │ {kind} failed (reverted by EVM). Tx Hash: {tx_hash}",
                    panel=f"Wallet {w}: {kind} reverted")
            return None

        self._enter(SubmitState.RETRIES_EXHAUSTED, kind)
        stats.failed_after_submit()
        r.error(f"Error: Wallet {w} │ {kind} failed after {self.max_retries} retries.",
                panel=f"Wallet {w}: {kind} failed after {self.max_retries} retries")
        return None
