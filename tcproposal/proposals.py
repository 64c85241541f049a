"""Approval of proposals and applying them to pricing."""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from tcproposal.domain import (
    NIL_UUID,
    ProposalHeader,
    ProposalItem,
    RequestPartner,
    TCPCheckStatus,
    TCPReviewResult,
    TcpGeneralStatus,
    _now,
)
from tcproposal.messages import (
    ApiResponse,
    BusinessError,
    Message,
    Messages,
    MonolithError,
    PaginatedData,
    ParamItem,
    RecordNotFoundError,
)
from tcproposal.monolith import FoldersCategory, MonolithClient, has_valid_file
from tcproposal.store import Store

_PRICING_UPDATE_FIELDS = ("changed_at", "changed_by", "result_id", "status_check_id")
_APPROVE_UPDATE_FIELDS = ("changed_at", "changed_by", "status_id", "receive_date")
_ADVANCE_PAY_CONDITION = 10


class ApproveProposalMessage:
    """Messages produced while approving proposals."""

    @staticmethod
    def success(proposal_id: int) -> Message:
        return Message.success(f"ТКП {proposal_id} подтверждено")

    @staticmethod
    def missing_header_field(field_name: str, header: ProposalHeader) -> Message:
        return Message.error(f"Заполните поле {field_name}").with_param_item(
            ParamItem(id=str(header.id), uuid=header.uuid)
        )

    @staticmethod
    def missing_item_field(field_name: str, item: ProposalItem) -> Message:
        return Message.error(f"Заполните поле {field_name}").with_param_item(
            ParamItem(uuid=item.uuid)
        )

    @staticmethod
    def not_found_tcp_document() -> Message:
        return Message.error("Прикрепите Документ ТКП")


def check_header_fields(proposals: Iterable[ProposalHeader]) -> list[Message]:
    """Errors for required header fields left empty."""
    result = []
    for header in proposals:
        checks = (
            (header.supplier_uuid == NIL_UUID, "Организация"),
            (header.start_date is None, "Начало срока действия"),
            (header.end_date is None, "Окончание срока действия"),
            (header.hierarchy_uuid is None, "UUID иерархии"),
        )
        result.extend(
            ApproveProposalMessage.missing_header_field(name, header)
            for is_empty, name in checks
            if is_empty
        )
    return result


def check_item_fields(items: Iterable[ProposalItem]) -> list[Message]:
    """Errors for required position fields left empty."""
    result = []
    for item in items:
        checks = (
            (item.is_possibility and item.price is None, "Цена Организации (без НДС)"),
            (item.is_possibility and item.vat_id is None, "Ставка НДС Организации"),
            (
                not item.is_possibility and not item.possibility_note,
                "Причина невозможности поставки",
            ),
            (
                item.pay_condition_id == _ADVANCE_PAY_CONDITION
                and item.prepayment_percent is None,
                "Размер аванса, %",
            ),
        )
        result.extend(
            ApproveProposalMessage.missing_item_field(name, item)
            for is_absent, name in checks
            if is_absent
        )
    return result


def _proposals_with_partners(
    store: Store, uuids: Iterable[UUID]
) -> list[tuple[ProposalHeader, RequestPartner]]:
    wanted = set(uuids)
    headers = store.select(ProposalHeader, lambda h: h.uuid in wanted)
    supplier_uuids = {h.supplier_uuid for h in headers}
    partners = {
        p.uuid: p for p in store.select(RequestPartner, lambda p: p.uuid in supplier_uuids)
    }
    return [(h, partners[h.supplier_uuid]) for h in headers if h.supplier_uuid in partners]


def _pricing_messages(
    updated: list[ProposalHeader], organizations: dict[UUID, str], is_applied: bool
) -> Messages:
    messages = Messages()
    verdict = "можно применить" if is_applied else "нельзя учесть"
    for header in updated:
        org = organizations.get(header.supplier_uuid)
        if org is None:
            raise RecordNotFoundError(
                "organization (request_partner.uuid) из монолита", RequestPartner.TABLE
            )
        messages.add(
            Message.success(f"ТКП {header.id} от {org} {verdict} при АЦ").with_param_item(
                ParamItem.from_id(header.id)
            )
        )
    return messages


def apply_proposal_pricing(
    store: Store,
    monolith: MonolithClient,
    user_id: int,
    token: str,
    uuids: Iterable[UUID],
    is_apply_pricing_consider: bool | None = None,
) -> ApiResponse[PaginatedData[ProposalHeader]]:
    """Mark proposals as reviewed and whether they count when pricing."""
    allowed = bool(is_apply_pricing_consider)
    result_id = TCPReviewResult.CONSIDER if allowed else TCPReviewResult.IGNORE
    changed_at = _now()

    pairs = _proposals_with_partners(store, uuids)
    supplier_ids = [partner.supplier_id for _, partner in pairs]
    pending = {partner.supplier_id: partner.uuid for _, partner in pairs}

    organizations: dict[UUID, str] = {}
    for org in monolith.search_organization_by_id(supplier_ids, token, user_id):
        partner_uuid = pending.pop(org.id, None)
        if partner_uuid is not None:
            organizations[partner_uuid] = org.text
    if pending:
        ids = ", ".join(str(k) for k in pending)
        raise MonolithError(f"В монолите не найдены организации ИД = {ids}.")

    headers = []
    for header, _ in pairs:
        header.changed_at = changed_at
        header.changed_by = user_id
        header.result_id = result_id
        header.status_check_id = TCPCheckStatus.REVIEWED
        headers.append(header)

    with store.transaction() as tx:
        updated = tx.update(headers, _PRICING_UPDATE_FIELDS)
        messages = _pricing_messages(updated, organizations, allowed)

    return ApiResponse(PaginatedData(updated), messages)


def approve_proposal(
    store: Store,
    monolith: MonolithClient,
    user_id: int,
    token: str,
    uuids: Iterable[UUID],
) -> tuple[list[ProposalHeader], Messages]:
    """Confirm proposals as received once their fields and document are filled in.

    Raises BusinessError listing every missing field, MonolithError when no hierarchy is found.
    """
    wanted = set(uuids)
    headers = store.select(ProposalHeader, lambda h: h.uuid in wanted)
    header_uuids = {h.uuid for h in headers}
    items_by_proposal: dict[UUID, list[ProposalItem]] = {u: [] for u in header_uuids}
    for item in store.select(ProposalItem, lambda i: i.proposal_uuid in header_uuids):
        items_by_proposal[item.proposal_uuid].append(item)

    messages = Messages()
    for message in check_header_fields(headers):
        messages.add(message)
    items = [item for h in headers for item in items_by_proposal[h.uuid]]
    for message in check_item_fields(items):
        messages.add(message)

    hierarchies = monolith.get_hierarchy(
        [h.hierarchy_uuid for h in headers if h.hierarchy_uuid is not None], token, user_id
    )
    if not hierarchies:
        raise MonolithError("Монолит вернул пустой список иерархий")

    attachments = [a for h in hierarchies for a in h.item_list]
    if not has_valid_file(attachments, FoldersCategory.TENDER_DOCUMENTATION):
        messages.add(ApproveProposalMessage.not_found_tcp_document())

    if messages.is_error():
        raise BusinessError(messages)

    changed_at = _now()
    for header in headers:
        header.changed_at = changed_at
        header.changed_by = user_id
        header.status_id = TcpGeneralStatus.RECEIVED
        header.receive_date = header.receive_date or changed_at

    with store.transaction() as tx:
        updated = tx.update(headers, _APPROVE_UPDATE_FIELDS)

    for header in updated:
        messages.add(ApproveProposalMessage.success(header.id))
    return updated, messages