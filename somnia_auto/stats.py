# somnia_auto/stats.py
from dataclasses import dataclass, field
from typing import List


@dataclass
class TxStats:
    """Counters shared by every submission of a run.

    pending goes up once when a submission starts and down once when it
    reaches a terminal outcome, so it is back to 0 when the run ends.
    """
    pending: int = 0
    success: int = 0
    failed: int = 0
    times: List[int] = field(default_factory=list)  # ms per confirmed tx

    def begin(self):
        self.pending += 1

    def succeeded(self, elapsed_ms: int):
        self.pending -= 1
        self.success += 1
        self.times.append(int(elapsed_ms))

    def failed_after_submit(self):
        self.pending -= 1
        self.failed += 1

    def failed_before_submit(self):
        # nothing was sent, pending untouched
        self.failed += 1

    def average_ms(self) -> float:
        return sum(self.times) / len(self.times) if self.times else 0.0

    def summary(self) -> str:
        return (f"success={self.success} failed={self.failed} pending={self.pending} "
                f"avg={self.average_ms() / 1000:.1f}s")
