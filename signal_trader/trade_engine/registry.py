"""One engine per account, created on demand."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from signal_trader.trade_engine.config import TradeEngineConfig
from signal_trader.trade_engine.engine import TradeLifecycleEngine
from signal_trader.trade_engine.types import Signal

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str, TradeEngineConfig], TradeLifecycleEngine]


def _default_factory(account_id: str, config: TradeEngineConfig) -> TradeLifecycleEngine:
    return TradeLifecycleEngine(config, account_id=account_id)


class EngineRegistry:
    """Engines share no state, so different accounts can trade concurrently."""

    def __init__(self, config: Optional[TradeEngineConfig] = None, factory: Optional[EngineFactory] = None):
        self.config = config or TradeEngineConfig()
        self._factory = factory or _default_factory
        self._engines: Dict[str, TradeLifecycleEngine] = {}

    def get(self, account_id: str) -> TradeLifecycleEngine:
        engine = self._engines.get(account_id)
        if engine is None:
            engine = self._factory(account_id, replace(self.config))
            self._engines[account_id] = engine
            logger.debug("Created engine for account %s", account_id)
        return engine

    def accounts(self) -> List[str]:
        return list(self._engines)

    async def submit(self, account_id: str, signal: Signal) -> None:
        await self.get(account_id).submit_signal(signal)

    async def drain(self) -> None:
        await asyncio.gather(*(engine.drain() for engine in self._engines.values()))
