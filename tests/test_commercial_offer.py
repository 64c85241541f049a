from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from tcproposal.commercial_offer import (
    CommercialOfferResponse,
    ConfirmationError,
    ConfirmationErrorDetail,
    PriceInfo,
    RequestConfirmation,
    commercial_offer_add_doc_response,
    commercial_offer_request_confirmation,
    commercial_offer_response,
    find_or_create_partner,
)
from tcproposal.domain import (
    PriceInformationRequestStatus,
    ProposalHeader,
    ProposalItem,
    RequestHeader,
    RequestItem,
    RequestPartner,
    TCPCheckStatus,
    TcpGeneralStatus,
)
from tcproposal.messages import InternalError, RecordNotFoundError
from tcproposal.store import Store

REQUEST_ID = 2000000003
USER_ID = 123


@pytest.fixture
def store():
    return Store()


def _request(store, **kwargs):
    header = RequestHeader(uuid=uuid4(), id=REQUEST_ID, **kwargs)
    return store.insert([header])[0]


def _get_request(store):
    return store.select_one(RequestHeader, lambda h: h.id == REQUEST_ID)


def test_add_doc_response_returns_hierarchy(store):
    hierarchy = uuid4()
    store.insert([ProposalHeader(uuid=uuid4(), etp_id=77, hierarchy_uuid=hierarchy)])
    assert commercial_offer_add_doc_response(store, 77) == hierarchy


def test_add_doc_response_without_hierarchy(store):
    store.insert([ProposalHeader(uuid=uuid4(), etp_id=77)])
    with pytest.raises(InternalError, match="отсутствует hierarchy_uuid"):
        commercial_offer_add_doc_response(store, 77)


def test_add_doc_response_unknown_proposal(store):
    with pytest.raises(RecordNotFoundError):
        commercial_offer_add_doc_response(store, 77)


def test_confirmation_success_opens_request(store):
    _request(store, status_id=PriceInformationRequestStatus.TCP_PROJECT)
    commercial_offer_request_confirmation(
        store, RequestConfirmation(id=REQUEST_ID, user_id=USER_ID, status="Success")
    )
    header = _get_request(store)
    assert header.status_id == PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS
    assert header.changed_by == USER_ID
    assert header.start_date == header.changed_at


def test_confirmation_error_keeps_start_date(store):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _request(store, status_id=PriceInformationRequestStatus.TCP_PROJECT, start_date=start)
    errors = [ConfirmationError("E1", "bad", ConfirmationErrorDetail("field"))]
    commercial_offer_request_confirmation(
        store,
        RequestConfirmation(id=REQUEST_ID, user_id=USER_ID, status="ERROR", errors=errors),
    )
    header = _get_request(store)
    assert header.status_id == PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR
    assert header.start_date == start
    assert header.changed_by == USER_ID


def test_confirmation_ignored_when_already_failed(store):
    _request(store, status_id=PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR, changed_by=5)
    commercial_offer_request_confirmation(
        store, RequestConfirmation(id=REQUEST_ID, user_id=USER_ID, status="success")
    )
    header = _get_request(store)
    assert header.status_id == PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR
    assert header.changed_by == 5


def test_confirmation_unknown_status(store):
    _request(store, status_id=PriceInformationRequestStatus.TCP_PROJECT)
    with pytest.raises(InternalError, match="неизвестный статус 'maybe'"):
        commercial_offer_request_confirmation(
            store, RequestConfirmation(id=REQUEST_ID, user_id=USER_ID, status="maybe")
        )
    assert _get_request(store).status_id == PriceInformationRequestStatus.TCP_PROJECT


def test_confirmation_unknown_request(store):
    with pytest.raises(RecordNotFoundError):
        commercial_offer_request_confirmation(
            store, RequestConfirmation(id=REQUEST_ID, user_id=USER_ID, status="success")
        )


def test_find_partner_existing_without_proposals(store):
    request_uuid = uuid4()
    partner = RequestPartner(uuid=uuid4(), request_uuid=request_uuid, supplier_id=9, number=1)
    store.insert([partner])
    found = find_or_create_partner(store, 9, request_uuid)
    assert found.uuid == partner.uuid
    assert found.is_public is True


def test_find_partner_with_proposal_fails(store):
    request_uuid = uuid4()
    partner = RequestPartner(uuid=uuid4(), request_uuid=request_uuid, supplier_id=9, number=1)
    store.insert([partner])
    store.insert([ProposalHeader(uuid=uuid4(), supplier_uuid=partner.uuid)])
    with pytest.raises(InternalError, match="От данной организации уже создано ТКП"):
        find_or_create_partner(store, 9, request_uuid)


def test_create_partner_takes_next_number(store):
    request_uuid = uuid4()
    store.insert(
        [
            RequestPartner(uuid=uuid4(), request_uuid=request_uuid, supplier_id=1, number=3),
            RequestPartner(uuid=uuid4(), request_uuid=request_uuid, supplier_id=2, number=1),
        ]
    )
    created = find_or_create_partner(store, 9, request_uuid)
    assert created.number == 4
    assert created.supplier_id == 9
    assert created.request_uuid == request_uuid
    assert created.is_public is True
    assert not store.select(RequestPartner, lambda p: p.uuid == created.uuid)


def _with_items(store, currency_id=643):
    request = _request(store, currency_id=currency_id)
    items = [
        RequestItem(
            uuid=uuid4(),
            request_uuid=request.uuid,
            number=number,
            quantity=Decimal("2"),
            description_internal=f"item {number}",
        )
        for number in (1, 2)
    ]
    store.insert(items)
    return request, items


def _response(price_info, asez_id=9):
    return CommercialOfferResponse(
        tcp_id=77,
        req_number=REQUEST_ID,
        hierarchy_uuid=uuid4(),
        user_id=USER_ID,
        date_start_proposal=date(2024, 1, 1),
        date_end_proposal=date(2024, 2, 1),
        asez_id=asez_id,
        contact_phone="phone",
        price_info=price_info,
    )


def test_response_stores_proposal(store):
    request, request_items = _with_items(store)
    response = _response(
        [
            PriceInfo(price_info_pos_nr=1, price=5, cost=Decimal("10"), cost_nds=12,
                      manufacturer="acme", impossible_to_do=True),
            PriceInfo(price_info_pos_nr=2, price=1, cost=Decimal("2.5"), cost_nds=3),
        ]
    )
    header = commercial_offer_response(store, response)

    assert header.etp_id == 77
    assert header.request_uuid == request.uuid
    assert header.hierarchy_uuid == response.hierarchy_uuid
    assert header.currency_id == 643
    assert header.status_id == TcpGeneralStatus.RECEIVED
    assert header.status_check_id == TCPCheckStatus.REVIEW
    assert header.sum_excluded_vat_total == Decimal("12.5")
    assert header.contact_phone == "phone"

    partner = store.select_one(RequestPartner, lambda p: p.uuid == header.supplier_uuid)
    assert partner.supplier_id == 9
    assert partner.is_public is True

    items = {i.number: i for i in store.select(ProposalItem)}
    assert items[1].request_item_uuid == request_items[0].uuid
    assert items[1].quantity == request_items[0].quantity
    assert items[1].description_internal == request_items[0].description_internal
    assert items[1].price == Decimal(5)
    assert items[1].manufacturer == "acme"
    assert items[1].is_possibility is True
    assert items[2].price is None
    assert items[2].sum_excluded_vat is None
    assert items[2].is_possibility is False
    assert all(i.proposal_uuid == header.uuid for i in items.values())


def test_response_reuses_existing_partner(store):
    request, _ = _with_items(store)
    partner = RequestPartner(uuid=uuid4(), request_uuid=request.uuid, supplier_id=9, number=1)
    store.insert([partner])
    header = commercial_offer_response(store, _response([]))
    assert header.supplier_uuid == partner.uuid
    assert store.select_one(RequestPartner).is_public is True


def test_response_without_asez_id(store):
    _with_items(store)
    with pytest.raises(InternalError, match=f"Отсутствует AsezId для req_number {REQUEST_ID}"):
        commercial_offer_response(store, _response([], asez_id=None))


def test_response_unknown_request(store):
    with pytest.raises(RecordNotFoundError):
        commercial_offer_response(store, _response([]))


def test_response_without_currency(store):
    _with_items(store, currency_id=None)
    with pytest.raises(InternalError, match="currency_id"):
        commercial_offer_response(store, _response([]))


def test_response_unknown_position_stores_nothing(store):
    _with_items(store)
    with pytest.raises(InternalError, match="Не найдена позиция ЗЦИ с номером 42"):
        commercial_offer_response(store, _response([PriceInfo(price_info_pos_nr=42)]))
    assert store.select(ProposalHeader) == []
    assert store.select(RequestPartner) == []