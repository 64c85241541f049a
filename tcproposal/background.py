"""Periodic background jobs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Awaitable, Callable

from tcproposal.domain import PriceInformationRequestStatus, RequestHeader, _now
from tcproposal.store import Store

logger = logging.getLogger(__name__)

CLOSE_REQUESTS_INTERVAL = timedelta(hours=1)
_CLOSE_FIELDS = ("changed_at", "changed_by", "status_id")


@dataclass
class PeriodicTask:
    """A job run again and again with a pause in between."""

    name: str
    interval: timedelta
    task: Callable[[], Awaitable[Any]]

    async def run_once(self) -> bool:
        """Run the job once; failures are logged, not raised. Returns whether it succeeded."""
        logger.info("Выполнение фоновой периодичной задачи %s", self.name)
        try:
            await self.task()
        except Exception as error:  # the loop must survive a failing run
            logger.info("Ошибка запуска задачи `%s`: %s", self.name, error)
            return False
        return True

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            logger.info(
                "Следущее выполнение задачи `%s` запланировано через %s",
                self.name,
                self.interval,
            )
            await asyncio.sleep(self.interval.total_seconds())

    def run(self) -> asyncio.Task:
        """Start the job on the running event loop and return its task."""
        return asyncio.get_running_loop().create_task(self._loop(), name=self.name)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def close_expired_requests(
    store: Store, tech_user_id: int, now: datetime | None = None
) -> list[RequestHeader]:
    """Close requests still accepting proposals whose end date has passed."""
    now = _as_datetime(now or _now())
    headers = store.select(
        RequestHeader,
        lambda h: h.status_id == PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS
        and h.end_date is not None
        and _as_datetime(h.end_date) <= now,
    )
    for header in headers:
        header.changed_at = now
        header.changed_by = tech_user_id
        header.status_id = PriceInformationRequestStatus.ENTRY_CLOSED
    with store.transaction() as tx:
        return tx.update(headers, _CLOSE_FIELDS)


def start_background_tasks(store: Store, tech_user_id: int) -> list[asyncio.Task]:
    """Start every background job on the running event loop."""

    async def close_requests() -> None:
        close_expired_requests(store, tech_user_id)

    tasks = [PeriodicTask("Закрытие ЗЦИ", CLOSE_REQUESTS_INTERVAL, close_requests)]
    return [task.run() for task in tasks]