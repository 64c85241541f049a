import asyncio
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

import pytest

from tcproposal.background import PeriodicTask, close_expired_requests, start_background_tasks
from tcproposal.domain import PriceInformationRequestStatus, RequestHeader
from tcproposal.messages import InternalError
from tcproposal.store import Store

TECH_USER = 123
OLD = datetime(2020, 1, 1, 10, 10, 10, tzinfo=timezone.utc)
H1 = UUID("00000000-0000-0000-0000-000000000001")
H2 = UUID("00000000-0000-0000-0000-000000000002")
H3 = UUID("00000000-0000-0000-0000-000000000003")


@pytest.fixture
def store():
    s = Store()
    s.insert(
        [
            RequestHeader(
                uuid=H1,
                status_id=PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS,
                end_date=date(2999, 1, 1),
                changed_at=OLD,
            ),
            RequestHeader(
                uuid=H2,
                status_id=PriceInformationRequestStatus.TCP_PROJECT,
                end_date=OLD,
                changed_at=OLD,
            ),
            RequestHeader(
                uuid=H3,
                status_id=PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS,
                end_date=OLD,
                changed_at=OLD,
            ),
        ]
    )
    return s


def test_success(store):
    now = datetime.now(timezone.utc)
    close_expired_requests(store, TECH_USER, now)
    headers = {h.uuid: h for h in store.select(RequestHeader)}

    for header_uuid, is_updated in [(H1, False), (H2, False), (H3, True)]:
        header = headers[header_uuid]
        if is_updated:
            assert header.changed_at >= now
            assert header.changed_by == TECH_USER
            assert header.status_id == PriceInformationRequestStatus.ENTRY_CLOSED
        else:
            assert header.changed_at < now, f"Запись {header_uuid} не должна была обновиться"


def test_returns_closed_headers(store):
    closed = close_expired_requests(store, TECH_USER)
    assert [h.uuid for h in closed] == [H3]


def test_naive_end_date_is_compared(store):
    store.insert(
        [
            RequestHeader(
                uuid=UUID(int=99),
                status_id=PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS,
                end_date=datetime(2020, 1, 1),
            )
        ]
    )
    closed = close_expired_requests(store, TECH_USER)
    assert {h.uuid for h in closed} == {H3, UUID(int=99)}


@pytest.mark.asyncio
async def test_run_once_reports_failure():
    async def failing():
        raise InternalError("boom")

    task = PeriodicTask("failing", timedelta(seconds=1), failing)
    assert await task.run_once() is False


@pytest.mark.asyncio
async def test_run_repeats_until_cancelled():
    calls = []

    async def job():
        calls.append(1)

    running = PeriodicTask("job", timedelta(0), job).run()
    await asyncio.sleep(0.01)
    assert not running.done()
    running.cancel()
    with pytest.raises(asyncio.CancelledError):
        await running
    assert running.cancelled()
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_start_background_tasks_closes_requests(store):
    tasks = start_background_tasks(store, TECH_USER)
    for _ in range(5):
        await asyncio.sleep(0)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    closed = store.select_one(RequestHeader, lambda h: h.uuid == H3)
    assert closed.status_id == PriceInformationRequestStatus.ENTRY_CLOSED
    assert closed.changed_by == TECH_USER
    assert all(task.cancelled() for task in tasks)