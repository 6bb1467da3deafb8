"""Per-engine event channel with registered consumers."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, List, Optional

from signal_trader.trade_engine.types import EventKind, TradeEvent

logger = logging.getLogger(__name__)

Consumer = Callable[[TradeEvent], Any]


@dataclass
class _Subscription:
    consumer: Consumer
    kinds: Optional[FrozenSet[EventKind]]

    def wants(self, event: TradeEvent) -> bool:
        return self.kinds is None or event.kind in self.kinds


class EventChannel:
    """Fan out trade events to subscribers in subscription order.

    Consumers may be plain callables or coroutine functions. Delivery is
    best-effort: a failing consumer is logged and skipped, and never affects
    the other consumers or the caller.
    """

    def __init__(self) -> None:
        self._subscriptions: List[_Subscription] = []

    def subscribe(self, consumer: Consumer, kinds: Optional[Iterable[EventKind]] = None) -> Callable[[], None]:
        """Register ``consumer`` for ``kinds`` (all kinds when None); returns an unsubscribe callable."""
        sub = _Subscription(consumer, frozenset(EventKind(k) for k in kinds) if kinds is not None else None)
        self._subscriptions.append(sub)

        def unsubscribe() -> None:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: TradeEvent) -> List[asyncio.Future]:
        """Deliver ``event``; returns the tasks scheduled for coroutine consumers.

        Sync consumers run before this returns. Awaitable results are wrapped
        in tasks on the running loop and not awaited here.
        """
        scheduled: List[asyncio.Future] = []
        for sub in list(self._subscriptions):
            if not sub.wants(event):
                continue
            try:
                result = sub.consumer(event)
            except Exception:  # noqa: BLE001 - consumers are side channels
                self._log_failure(sub.consumer, event)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                task.add_done_callback(self._reporter(sub.consumer, event))
                scheduled.append(task)
        return scheduled

    def _reporter(self, consumer: Consumer, event: TradeEvent) -> Callable[[asyncio.Future], None]:
        def report(task: asyncio.Future) -> None:
            if not task.cancelled() and task.exception() is not None:
                self._log_failure(consumer, event, task.exception())

        return report

    @staticmethod
    def _log_failure(consumer: Consumer, event: TradeEvent, exc: Optional[BaseException] = None) -> None:
        logger.error(
            "Event consumer %r failed on %s event for %s",
            consumer,
            event.kind.value,
            event.symbol,
            exc_info=exc if exc is not None else True,
        )
