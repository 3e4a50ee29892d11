"""
Фоновое обновление корзины с сервера.

Запросы могут идти параллельно с локальными правками и завершаться в
любом порядке. Каждый запрос получает номер; применяется только ответ
с номером больше последнего применённого, а слияние всегда идёт с тем
состоянием сессии, которое актуально в момент прихода ответа.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from .domain import CartItem, MergeResult
from .ftypes import Either
from .service import CartSession

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Optional[Iterable[CartItem]]]]

STALE = "stale"


class CartSync:
    """Хост последовательных обновлений для одной CartSession"""

    def __init__(self, session: CartSession):
        self.session = session
        self._issued = 0
        self._applied = 0

    @property
    def last_applied(self) -> int:
        return self._applied

    def next_ticket(self) -> int:
        self._issued += 1
        return self._issued

    def apply(
        self, ticket: int, server_items: Optional[Iterable[CartItem]]
    ) -> Either[str, MergeResult]:
        """Применяет ответ с номером ticket или отбрасывает устаревший"""
        if ticket <= self._applied:
            logger.info(
                "Discarding stale cart snapshot #%d (already applied #%d)",
                ticket,
                self._applied,
            )
            return Either.left(STALE)

        self._applied = ticket
        return Either.right(self.session.apply_server_snapshot(server_items))

    async def refresh(self, fetch: Fetch) -> Either[str, MergeResult]:
        """
        Запрашивает снимок и сливает его с текущей корзиной.
        Исключения fetch не перехватываются: состояние при этом не меняется.
        """
        ticket = self.next_ticket()
        server_items = await fetch()
        return self.apply(ticket, server_items)

    async def refresh_many(self, fetches: List[Fetch]) -> List[Either[str, MergeResult]]:
        """Запускает несколько обновлений параллельно (номера: в порядке списка)"""
        return await asyncio.gather(*(self.refresh(fetch) for fetch in fetches))


def run_refresh(sync: CartSync, fetch: Fetch) -> Either[str, MergeResult]:
    """Синхронная обёртка для использования в UI"""
    return asyncio.run(sync.refresh(fetch))
