"""In-memory snapshot of the remote order ledger for one run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .model import Order


@dataclass(frozen=True, slots=True)
class LedgerCache:
    """Ordered, immutable view of the ledger.

    In-progress orders are kept ahead of completed ones when the cache is built and
    whenever an order is inserted, so the matcher meets the likeliest candidates
    first. Replacing an order keeps its slot: an order completed during the run stays
    among the in-progress prefix.
    """

    orders: tuple[Order, ...] = ()

    @classmethod
    def from_listing(cls, orders: Iterable[Order]) -> LedgerCache:
        listed = tuple(orders)
        in_progress = tuple(order for order in listed if order.is_in_progress)
        completed = tuple(order for order in listed if not order.is_in_progress)
        return cls(orders=in_progress + completed)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)

    def __getitem__(self, index: int) -> Order:
        return self.orders[index]

    def with_created(self, order: Order) -> LedgerCache:
        if order.is_in_progress:
            return LedgerCache(orders=(order, *self.orders))
        return LedgerCache(orders=(*self.orders, order))

    def with_replaced(self, index: int, order: Order) -> LedgerCache:
        if not 0 <= index < len(self.orders):
            raise IndexError(f"No cached order at slot {index}")
        return LedgerCache(orders=(*self.orders[:index], order, *self.orders[index + 1 :]))

    def counts(self) -> tuple[int, int]:
        """Return ``(in_progress, completed)`` order counts."""

        in_progress = sum(1 for order in self.orders if order.is_in_progress)
        return in_progress, len(self.orders) - in_progress
