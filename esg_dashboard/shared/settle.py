from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DroppedItem:
    key: str
    reason: str


@dataclass
class SettleResult(Generic[T]):
    successes: list[T] = field(default_factory=list)
    dropped: list[DroppedItem] = field(default_factory=list)

    @property
    def dropped_keys(self) -> list[str]:
        return [item.key for item in self.dropped]


async def settle_all(keys: Iterable[str], fn: Callable[[str], Awaitable[T]]) -> SettleResult[T]:
    """Run ``fn`` for every key concurrently and wait for all outcomes.

    Successes keep the order of ``keys``. Each key whose call raised an
    ``Exception`` is recorded in ``dropped`` with the error text; a slow key
    delays the result but never blocks the others. Cancellation propagates.
    """
    key_list = list(keys)
    outcomes = await asyncio.gather(*(fn(key) for key in key_list), return_exceptions=True)
    result: SettleResult[T] = SettleResult()
    for key, outcome in zip(key_list, outcomes):
        if isinstance(outcome, Exception):
            reason = str(outcome) or type(outcome).__name__
            logger.warning("Dropping %s: %s", key, reason)
            result.dropped.append(DroppedItem(key=key, reason=reason))
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        result.successes.append(outcome)
    return result
