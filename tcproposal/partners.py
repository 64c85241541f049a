"""Checks for adding suppliers to, and removing them from, a price information request."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

from tcproposal.domain import (
    PriceInformationRequestStatus,
    ProposalHeader,
    RequestHeader,
    RequestPartner,
    TcpGeneralStatus,
)
from tcproposal.messages import ApiResponse, Message, Messages, PaginatedData, ParamItem
from tcproposal.store import Store

ADD_ERROR_TEXT = "Для выбранной организации уже существует ТКП"
PUBLISHED_ETP_TEXT = "Информация опубликована на ЭТП ГПБ. Удаление невозможно"
TCP_EXIST_TEXT = "Удаление организации невозможно. Имеется подтвержденное ТКП"
DELETED_TEXT = "Выбранные записи удалены"
DELETION_PROHIBITED_TEXT = (
    "Удаление организации невозможно. Статус ЗЦИ не равен одному из статусов: 70, 90, 100, 150"
)

_CHECKED_STATUSES = frozenset(
    {
        PriceInformationRequestStatus.ACCEPTING_INCOMING_TCPS,
        PriceInformationRequestStatus.ERROR_PUBLISHING_CHANGES,
    }
)
_DIRECT_DELETE_STATUSES = frozenset(
    {
        PriceInformationRequestStatus.TCP_PROJECT,
        PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR,
    }
)


@dataclass(frozen=True)
class SupplierId:
    """Supplier chosen by the user."""

    supplier_id: int


@dataclass(frozen=True)
class CheckPartnerItem:
    """Whether the operation is allowed for a supplier."""

    supplier_id: int
    is_allowed: bool


@dataclass
class CheckPartnerRequest:
    """Suppliers to check against one price information request."""

    uuid: UUID
    item_list: list[SupplierId] = field(default_factory=list)
    id: int = 0


def _param_items(items: Iterable[CheckPartnerItem]) -> list[ParamItem]:
    return [ParamItem.from_id(item.supplier_id) for item in items]


def _deleted_success(items: list[CheckPartnerItem]) -> Message:
    return Message.success(DELETED_TEXT).with_parameters(_param_items(items))


def _items(supplier_ids: Iterable[int], is_allowed: bool) -> list[CheckPartnerItem]:
    return [CheckPartnerItem(supplier_id, is_allowed) for supplier_id in supplier_ids]


def check_add_partner(
    store: Store, request: CheckPartnerRequest
) -> ApiResponse[PaginatedData[CheckPartnerItem]]:
    """A supplier may be added unless it already has a live proposal for the request."""
    wanted = {item.supplier_id for item in request.item_list}
    partners = store.select(
        RequestPartner,
        lambda p: p.request_uuid == request.uuid and p.supplier_id in wanted,
    )
    supplier_by_partner = {p.uuid: p.supplier_id for p in partners}
    proposals_by_supplier: dict[int, list[ProposalHeader]] = {
        p.supplier_id: [] for p in partners
    }
    for proposal in store.select(
        ProposalHeader,
        lambda h: h.supplier_uuid in supplier_by_partner
        and h.status_id != TcpGeneralStatus.DELETED,
    ):
        proposals_by_supplier[supplier_by_partner[proposal.supplier_uuid]].append(proposal)

    messages = Messages()
    result = []
    for item in request.item_list:
        is_allowed = not proposals_by_supplier.get(item.supplier_id)
        if not is_allowed:
            messages.add(Message.error(ADD_ERROR_TEXT))
        result.append(CheckPartnerItem(item.supplier_id, is_allowed))
    return ApiResponse(PaginatedData(result), messages)


def _requests_with_partners(
    store: Store, request: CheckPartnerRequest
) -> list[tuple[RequestHeader, list[RequestPartner]]]:
    allowed = _CHECKED_STATUSES | _DIRECT_DELETE_STATUSES
    wanted = {item.supplier_id for item in request.item_list}
    headers = store.select(
        RequestHeader, lambda h: h.uuid == request.uuid and h.status_id in allowed
    )
    return [
        (
            header,
            store.select(
                RequestPartner,
                lambda p, h=header: p.request_uuid == h.uuid
                and p.supplier_id in wanted
                and not p.is_removed,
            ),
        )
        for header in headers
    ]


def _partners_with_proposals(
    store: Store, request_uuid: UUID, partners: list[RequestPartner]
) -> list[tuple[RequestPartner, list[ProposalHeader]]]:
    wanted = {p.supplier_id for p in partners}
    found = store.select(
        RequestPartner,
        lambda p: p.supplier_id in wanted
        and p.request_uuid == request_uuid
        and not p.is_removed,
    )
    return [
        (
            partner,
            store.select(ProposalHeader, lambda h, u=partner.uuid: h.supplier_uuid == u),
        )
        for partner in found
    ]


def check_delete_partner(
    store: Store, request: CheckPartnerRequest
) -> ApiResponse[PaginatedData[CheckPartnerItem]]:
    """Remove suppliers from a request where the request status and proposals allow it."""
    messages = Messages()
    requested_ids = [item.supplier_id for item in request.item_list]
    requested_set = set(requested_ids)

    checked: list[tuple[RequestHeader, list[RequestPartner]]] = []
    direct: list[tuple[RequestHeader, list[RequestPartner]]] = []
    for entry in _requests_with_partners(store, request):
        (checked if entry[0].status_id in _CHECKED_STATUSES else direct).append(entry)

    if direct:
        _, suppliers = direct.pop()
        removed = [p for p in suppliers if p.supplier_id in requested_set]
        for partner in removed:
            partner.is_removed = True
        with store.transaction() as tx:
            tx.update(removed, ["is_removed"])
        items = _items(requested_ids, True)
        messages.add(_deleted_success(items))
        return ApiResponse(PaginatedData(items), messages)

    if not checked:
        items = _items(requested_ids, False)
        messages.add(
            Message.error(DELETION_PROHIBITED_TEXT).with_parameters(_param_items(items))
        )
        return ApiResponse(PaginatedData(items), messages)

    _, suppliers = checked.pop()
    public = [p for p in suppliers if p.is_public]
    not_public = [p for p in suppliers if not p.is_public]
    response_items: list[CheckPartnerItem] = []

    known = {p.supplier_id for p in suppliers}
    front_only = [sid for sid in requested_ids if sid not in known]
    if front_only:
        items = _items(front_only, True)
        messages.add(_deleted_success(items))
        response_items.extend(items)

    if public:
        items = _items((p.supplier_id for p in public), False)
        messages.add(Message.error(PUBLISHED_ETP_TEXT).with_parameters(_param_items(items)))
        response_items.extend(items)

    if not_public:
        with_proposals = _partners_with_proposals(store, request.uuid, not_public)
        received = [
            partner
            for partner, proposals in with_proposals
            if any(p.status_id == TcpGeneralStatus.RECEIVED for p in proposals)
        ]
        if not received:
            partners = [partner for partner, _ in with_proposals]
            for partner in partners:
                partner.is_removed = True
            proposals = [p for _, group in with_proposals for p in group]
            for proposal in proposals:
                proposal.status_id = TcpGeneralStatus.DELETED
            with store.transaction() as tx:
                tx.update(partners, ["is_removed"])
                tx.update(proposals, ["status_id"])
            items = _items((p.supplier_id for p in partners), True)
            messages.add(_deleted_success(items))
        else:
            items = _items((p.supplier_id for p in received), False)
            messages.add(Message.error(TCP_EXIST_TEXT).with_parameters(_param_items(items)))
        response_items.extend(items)

    return ApiResponse(PaginatedData(response_items), messages)