"""Locate the cached order that represents the same real-world job."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .timestamps import difference_ms

if TYPE_CHECKING:
    from datetime import datetime

    from .ledger import LedgerCache
    from .model import Order

log = getLogger(__name__)

JITTER_WINDOW_MS: Final = 60_000

ONE_HOUR_MS: Final = 3_600_000
EIGHT_HOURS_MS: Final = 28_800_000
NINE_HOURS_MS: Final = 32_400_000
KNOWN_CLOCK_SKEWS_MS: Final = frozenset({ONE_HOUR_MS, EIGHT_HOURS_MS, NINE_HOURS_MS})


@dataclass(frozen=True, slots=True)
class LedgerMatch:
    index: int
    order: Order
    difference_ms: int


@dataclass(frozen=True, slots=True)
class OrderMatcher:
    """First-match search over the cache by orderer and start time.

    Two start times are the same instant when they differ by less than the jitter
    window, or by exactly one of the allow-listed clock skews. The allow-list is an
    exact-equality check; it never widens the jitter window.
    """

    skew_allowlist_ms: frozenset[int] = field(default_factory=frozenset)
    jitter_window_ms: int = JITTER_WINDOW_MS

    def __post_init__(self) -> None:
        unknown = self.skew_allowlist_ms - KNOWN_CLOCK_SKEWS_MS
        if unknown:
            raise ValueError(f"Unsupported clock skews: {sorted(unknown)}")

    def is_same_instant(self, first: datetime, second: datetime) -> bool:
        return self._accepts(difference_ms(first, second))

    def _accepts(self, diff_ms: int) -> bool:
        return diff_ms < self.jitter_window_ms or diff_ms in self.skew_allowlist_ms

    def find(self, orderer: str, start: datetime, ledger: LedgerCache) -> LedgerMatch | None:
        for index, order in enumerate(ledger):
            if order.orderer != orderer:
                continue
            diff_ms = difference_ms(start, order.work_start_time)
            accepted = self._accepts(diff_ms)
            log.debug(
                "Candidate [%s] %s start=%s diff=%sms match=%s",
                index,
                order.orderer,
                order.work_start_time,
                diff_ms,
                accepted,
            )
            if accepted:
                return LedgerMatch(index=index, order=order, difference_ms=diff_ms)
        return None
