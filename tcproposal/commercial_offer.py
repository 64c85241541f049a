"""Handling of commercial-offer messages received from the trading platform."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from tcproposal.domain import (
    PriceInformationRequestStatus,
    ProposalHeader,
    ProposalItem,
    RequestHeader,
    RequestItem,
    RequestPartner,
    TCPCheckStatus,
    TcpGeneralStatus,
    _now,
)
from tcproposal.messages import InternalError, RecordNotFoundError
from tcproposal.store import Store

logger = logging.getLogger(__name__)

_CONFIRMATION_SUCCESS_FIELDS = ("status_id", "start_date", "changed_at", "changed_by")
_CONFIRMATION_ERROR_FIELDS = ("status_id", "changed_at", "changed_by")

Number = Decimal | float | int


def _decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class ConfirmationErrorDetail:
    """Where a reported error points to."""

    field: str = ""


@dataclass(frozen=True)
class ConfirmationError:
    """An error reported by the platform when a request was rejected."""

    code: str
    message: str
    details: ConfirmationErrorDetail = field(default_factory=ConfirmationErrorDetail)


@dataclass
class RequestConfirmation:
    """The platform's answer to a published price information request."""

    id: int
    user_id: int
    status: str
    errors: list[ConfirmationError] | None = None


@dataclass
class PriceInfo:
    """One position of a received proposal."""

    price_info_pos_nr: int
    price: Number = 0
    cost: Number = 0
    cost_nds: Number = 0
    vat_id: int | None = None
    manufacturer: str = ""
    product_mark: str | None = None
    pay_condition_id: int | None = None
    prepayment_percent: Number | None = None
    terms_of_delivery: str | None = None
    execution_percent: Number | None = None
    impossible_to_do: bool | None = None
    cause_impossible: str | None = None
    analog_description: str | None = None
    delivery_period: str | None = None


@dataclass
class CommercialOfferResponse:
    """A proposal sent by a supplier through the platform."""

    tcp_id: int
    req_number: int
    hierarchy_uuid: UUID
    user_id: int
    date_start_proposal: date
    date_end_proposal: date
    asez_id: int | None = None
    contact_phone: str | None = None
    price_info: list[PriceInfo] = field(default_factory=list)


def commercial_offer_add_doc_response(store: Store, tcp_id: int) -> UUID:
    """Hierarchy uuid of the proposal with the given platform id."""
    header = store.select_one(ProposalHeader, lambda h: h.etp_id == tcp_id)
    if header.hierarchy_uuid is None:
        logger.error("ProposalHeader(etp_id=%s) найден, но hierarchy_uuid = NULL", tcp_id)
        raise InternalError(f"У ТКП (TCPID={tcp_id}) отсутствует hierarchy_uuid")
    return header.hierarchy_uuid


def commercial_offer_request_confirmation(
    store: Store, confirmation: RequestConfirmation
) -> None:
    """Open the request for proposals on success, mark it failed on error.

    A request already marked as failed is left as it is.
    """
    header = next(
        iter(store.select(RequestHeader, lambda h: h.id == confirmation.id)), None
    )
    if header is None:
        raise RecordNotFoundError(str(confirmation.id), RequestHeader.TABLE)

    if header.status_id == PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR:
        return

    now = _now()
    status = confirmation.status.lower()
    if status == "success":
        status_id = PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS
        start_date = now
        fields = _CONFIRMATION_SUCCESS_FIELDS
    elif status == "error":
        status_id = PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR
        start_date = None
        fields = _CONFIRMATION_ERROR_FIELDS
    else:
        msg = (
            "CommercialOfferRequestConfirmation: неизвестный статус "
            f"'{confirmation.status}'"
        )
        logger.error(msg)
        raise InternalError(msg)

    header.status_id = status_id
    header.start_date = start_date
    header.changed_at = now
    header.changed_by = confirmation.user_id

    if status == "error" and confirmation.errors is not None:
        flat_errors = "; ".join(
            f"code={e.code}, message={e.message}, field={e.details.field}"
            for e in confirmation.errors
        )
        logger.error(
            "CommercialOfferRequestConfirmation: Ошибка подтверждения ЗЦИ: %s. "
            "Содержимое сообщения: %r",
            flat_errors,
            confirmation,
        )

    with store.transaction() as tx:
        tx.update([header], fields)


def find_or_create_partner(
    store: Store, asez_id: int, request_uuid: UUID
) -> RequestPartner:
    """The supplier's partner record for the request, made public; a new one if absent.

    A new record is not stored. Raises InternalError if the supplier already sent a proposal.
    """
    existing = next(
        iter(
            store.select(
                RequestPartner,
                lambda p: p.supplier_id == asez_id
                and p.request_uuid == request_uuid
                and not p.is_removed,
            )
        ),
        None,
    )
    if existing is not None:
        proposals = store.select(
            ProposalHeader, lambda h: h.supplier_uuid == existing.uuid
        )
        if proposals:
            logger.error(
                "От данной организации уже создано ТКП (id = %s)", proposals[0].id
            )
            raise InternalError("От данной организации уже создано ТКП")
        existing.is_public = True
        return existing

    max_number = max(
        (p.number for p in store.select(RequestPartner, lambda p: p.request_uuid == request_uuid)),
        default=0,
    )
    return RequestPartner(
        uuid=uuid4(),
        request_uuid=request_uuid,
        supplier_id=asez_id,
        number=max_number + 1,
        is_public=True,
    )


def _build_proposal_header(
    response: CommercialOfferResponse,
    request_uuid: UUID,
    partner_uuid: UUID,
    currency_id: int,
) -> ProposalHeader:
    now = _now()
    total = sum((_decimal(p.cost) for p in response.price_info), Decimal(0))
    return ProposalHeader(
        uuid=uuid4(),
        etp_id=response.tcp_id,
        request_uuid=request_uuid,
        hierarchy_uuid=response.hierarchy_uuid,
        supplier_uuid=partner_uuid,
        start_date=response.date_start_proposal,
        end_date=response.date_end_proposal,
        currency_id=currency_id,
        created_by=response.user_id,
        created_at=now,
        changed_at=now,
        changed_by=response.user_id,
        status_id=TcpGeneralStatus.RECEIVED,
        status_check_id=TCPCheckStatus.REVIEW,
        receive_date=now,
        sum_excluded_vat_total=total,
        contact_phone=response.contact_phone,
    )


def _build_proposal_items(
    price_info: list[PriceInfo],
    proposal_uuid: UUID,
    request_items: dict[int, RequestItem],
) -> list[ProposalItem]:
    items = []
    for info in price_info:
        number = info.price_info_pos_nr
        request_item = request_items.get(number)
        if request_item is None:
            raise InternalError(f"Не найдена позиция ЗЦИ с номером {number}")
        # The platform's flag is stored as given, and the amounts only accompany it.
        flag = bool(info.impossible_to_do)
        items.append(
            ProposalItem(
                uuid=uuid4(),
                number=number,
                proposal_uuid=proposal_uuid,
                request_item_uuid=request_item.uuid,
                description_internal=request_item.description_internal,
                quantity=request_item.quantity,
                unit_id=request_item.unit_id,
                price=_decimal(info.price) if flag else None,
                vat_id=info.vat_id,
                sum_excluded_vat=_decimal(info.cost) if flag else None,
                sum_included_vat=_decimal(info.cost_nds) if flag else None,
                manufacturer=info.manufacturer if flag else None,
                mark=info.product_mark,
                pay_condition_id=info.pay_condition_id,
                prepayment_percent=None
                if info.prepayment_percent is None
                else _decimal(info.prepayment_percent),
                delivery_condition=info.terms_of_delivery,
                execution_percent=None
                if info.execution_percent is None
                else _decimal(info.execution_percent),
                is_possibility=flag,
                possibility_note=info.cause_impossible,
                analog_description=info.analog_description,
                delivery_period=info.delivery_period,
            )
        )
    return items


def commercial_offer_response(
    store: Store, response: CommercialOfferResponse
) -> ProposalHeader:
    """Store a received proposal with its positions; returns the stored header."""
    req_number = response.req_number
    if response.asez_id is None:
        msg = f"Отсутствует AsezId для req_number {req_number}"
        logger.error(msg)
        raise InternalError(msg)

    request = next(iter(store.select(RequestHeader, lambda h: h.id == req_number)), None)
    if request is None:
        raise RecordNotFoundError(str(req_number), RequestHeader.TABLE)

    partner = find_or_create_partner(store, response.asez_id, request.uuid)

    if request.currency_id is None:
        raise InternalError(
            "Не удалось получить currency_id из RequestHeader (возможно отсутствует в БД)"
        )
    header = _build_proposal_header(response, request.uuid, partner.uuid, request.currency_id)

    request_items = {
        item.number: item
        for item in store.select(RequestItem, lambda i: i.request_uuid == request.uuid)
    }
    items = _build_proposal_items(response.price_info, header.uuid, request_items)

    with store.transaction() as tx:
        if tx.select(RequestPartner, lambda p: p.uuid == partner.uuid):
            tx.update([partner], ["is_public"])
        else:
            tx.insert([partner])
        stored = tx.insert([header])[0]
        tx.insert(items)
    return stored