"""Allocators: find free time intervals under layered constraints."""

import bisect
from collections.abc import Iterable
from datetime import datetime, timedelta

from chronoplan.logger import debug_enabled, get_logger

from .core import Interval, blocked_time, merge_intervals
from .protocols import Allocator

logger = get_logger()


class CalendarAllocator:
    """Treats the whole horizon as free time."""

    def __init__(self, horizon: Interval) -> None:
        self.horizon = horizon

    def next_available(self, after: datetime, min_duration: timedelta) -> Interval | None:
        start = max(after, self.horizon.start)
        if start >= self.horizon.end or self.horizon.end - start < min_duration:
            return None
        return Interval(start, self.horizon.end)

    def __repr__(self) -> str:
        return f"CalendarAllocator({self.horizon.start} - {self.horizon.end})"


class IdleIntervalAllocator:
    """Narrows another allocator by removing non-working intervals.

    Blackouts are merged into a sorted, non-overlapping tuple at construction,
    which lets each query find the next conflicting blackout by binary search.
    """

    def __init__(self, inner: Allocator, blackouts: Iterable[Interval], name: str = "") -> None:
        """Wrap an allocator.

        Args:
            inner: Allocator whose offers are narrowed
            blackouts: Non-working intervals (any order, may overlap)
            name: Label used in debug output
        """
        self.inner = inner
        self.blackouts = merge_intervals(blackouts)
        self.name = name

    def _next_blackout(self, point: datetime) -> Interval | None:
        """First blackout ending after point (it may already contain point)."""
        idx = bisect.bisect_right(self.blackouts, point, key=lambda i: i.end)
        return self.blackouts[idx] if idx < len(self.blackouts) else None

    def next_available(self, after: datetime, min_duration: timedelta) -> Interval | None:
        cursor = after
        while True:
            offer = self.inner.next_available(cursor, min_duration)
            if offer is None:
                return None

            blackout = self._next_blackout(offer.start)
            if blackout is None or blackout.start >= offer.end:
                return offer

            if blackout.start <= offer.start:
                # Offer starts inside a blackout: shift past it and ask again
                if debug_enabled():
                    logger.debug(
                        f"      [{self.name or 'idle'}] {offer.start} blocked until {blackout.end}"
                    )
                cursor = blackout.end
                continue

            candidate = Interval(offer.start, blackout.start)
            if candidate.duration >= min_duration:
                return candidate

            if debug_enabled():
                logger.debug(
                    f"      [{self.name or 'idle'}] gap {candidate.start} - {candidate.end} "
                    f"shorter than {min_duration}"
                )
            cursor = blackout.end

    def idle_time(self, start: datetime, end: datetime) -> timedelta:
        """Blacked-out time within [start, end) for this layer only."""
        return blocked_time(start, end, self.blackouts)

    def __repr__(self) -> str:
        return f"IdleIntervalAllocator({self.name or len(self.blackouts)}, {self.inner!r})"


def chain_allocators(
    base: Allocator, *layers: Iterable[Interval] | tuple[str, Iterable[Interval]]
) -> Allocator:
    """Wrap base with one IdleIntervalAllocator per blackout layer.

    Each layer only removes time, so the chain can never offer time the base
    allocator would not.

    Args:
        base: Innermost allocator
        layers: Blackout collections, optionally as (name, blackouts) pairs

    Returns:
        The outermost allocator of the chain
    """
    allocator = base
    for layer in layers:
        if isinstance(layer, tuple) and len(layer) == 2 and isinstance(layer[0], str):  # noqa: PLR2004
            name, blackouts = layer
        else:
            name, blackouts = "", layer
        allocator = IdleIntervalAllocator(allocator, blackouts, name=name)
    return allocator


def collect_blackouts(allocator: Allocator) -> tuple[Interval, ...]:
    """Merged blackouts of every idle layer in a chain, for working-time estimates."""
    found: list[Interval] = []
    current: object = allocator
    while isinstance(current, IdleIntervalAllocator):
        found.extend(current.blackouts)
        current = current.inner
    return merge_intervals(found)
