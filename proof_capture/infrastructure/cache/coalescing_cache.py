"""
Adapter: Coalescing Cache

Memoização por chave com no máximo uma carga em andamento por chave.
Chamadas concorrentes para a mesma chave compartilham a mesma task.
Invalidação explícita (sem TTL); uma carga iniciada antes da
invalidação não é gravada. Erros nunca são cacheados.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CoalescingCache(Generic[K, V]):

    def __init__(self, name: str = "cache"):
        self._name = name
        self._values: dict[K, V] = {}
        self._inflight: dict[K, asyncio.Task] = {}

    def __contains__(self, key: K) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def peek(self, key: K) -> V | None:
        """Valor já cacheado, sem disparar carga."""
        return self._values.get(key)

    async def get(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        if key in self._values:
            return self._values[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, loader))
            self._inflight[key] = task
            logger.debug("%s: loading %r", self._name, key)
        # shield: cancelar um chamador não cancela a carga dos outros
        return await asyncio.shield(task)

    def invalidate(self, key: K | None = None) -> None:
        """Sem chave → limpa tudo."""
        if key is None:
            self._values.clear()
            self._inflight.clear()
        else:
            self._values.pop(key, None)
            self._inflight.pop(key, None)
        logger.debug("%s: invalidated %s", self._name, "all" if key is None else repr(key))

    async def _load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        try:
            value = await loader()
        except BaseException:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]
            raise

        # invalidate() durante a carga remove o registro: não grava
        if self._inflight.get(key) is asyncio.current_task():
            del self._inflight[key]
            self._values[key] = value
        return value
