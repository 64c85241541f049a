"""Creation and lookup of price information requests and their proposals."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, TypeVar
from uuid import UUID, uuid4

from tcproposal.domain import (
    PriceInformationRequestStatus,
    PriceInformationRequestType,
    ProposalHeader,
    ProposalItem,
    RequestHeader,
    RequestItem,
    RequestPartner,
    _now,
)
from tcproposal.messages import Message, Messages, RecordNotFoundError, TcpError
from tcproposal.store import Store

R = TypeVar("R")


@dataclass
class PlanUUIDs:
    """A purchase plan and the plan positions to request prices for."""

    plan_uuid: str
    plan_item_uuids: list[str] = field(default_factory=list)


@dataclass
class SupplierFormData:
    supplier_id: int
    additional_email: str | None = None


@dataclass
class FileFormData:
    uuid: str
    name: str


@dataclass
class CreatePriceInformationRequest:
    """User input for creating price information requests."""

    plan_data: list[PlanUUIDs]
    period_of_validity: date | None
    request_type: int
    technical_specification: FileFormData
    draft_treaty: FileFormData
    template_tkp: FileFormData
    suppliers: list[SupplierFormData] | None = None
    additional_documents: list[FileFormData] | None = None


@dataclass
class PriceInformationRequest:
    """A request header with its positions and suppliers."""

    header: RequestHeader = field(default_factory=RequestHeader)
    items: list[RequestItem] = field(default_factory=list)
    suppliers: list[RequestPartner] | None = None


@dataclass
class TechnicalCommercialProposal:
    """A proposal header with its positions."""

    header: ProposalHeader = field(default_factory=ProposalHeader)
    items: list[ProposalItem] = field(default_factory=list)


@dataclass
class PriceInformationDetail:
    """Full view of one request: header, positions ordered by uuid, suppliers."""

    header: RequestHeader
    items: list[RequestItem] = field(default_factory=list)
    suppliers: list[RequestPartner] = field(default_factory=list)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError) as exc:
        raise TcpError(f"Некорректный UUID: {value!r}") from exc


def _group(records: Iterable[R], key: Callable[[R], UUID]) -> dict[UUID, list[R]]:
    grouped: dict[UUID, list[R]] = defaultdict(list)
    for record in records:
        grouped[key(record)].append(record)
    return dict(grouped)


def create_requests_from_json(
    json_dto: CreatePriceInformationRequest,
) -> list[PriceInformationRequest]:
    """One request per plan, with positions and suppliers filled in from the input."""
    result = []
    for plan in json_dto.plan_data:
        header = RequestHeader(
            uuid=uuid4(),
            plan_uuid=_parse_uuid(plan.plan_uuid),
            end_date=json_dto.period_of_validity,
            type_request_id=PriceInformationRequestType(json_dto.request_type),
            status_id=PriceInformationRequestStatus.CREATED,
            created_at=_now(),
        )
        items = [
            RequestItem(
                uuid=uuid4(),
                request_uuid=header.uuid,
                plan_item_uuid=_parse_uuid(item_uuid),
            )
            for item_uuid in plan.plan_item_uuids
        ]
        suppliers = None
        if json_dto.suppliers is not None:
            suppliers = [
                RequestPartner(
                    uuid=uuid4(),
                    request_uuid=header.uuid,
                    supplier_id=supplier.supplier_id,
                )
                for supplier in json_dto.suppliers
            ]
        result.append(PriceInformationRequest(header=header, items=items, suppliers=suppliers))
    return result


def validate_create_request(request: CreatePriceInformationRequest) -> Messages:
    """Error messages for every required field left empty."""
    messages = Messages()

    def require(value: str, name: str) -> None:
        if not value:
            messages.add(Message.error(f'Заполните поле "{name}"'))

    require("" if request.period_of_validity is None else str(request.period_of_validity),
            "Срок действия")
    require(request.technical_specification.uuid, "Техническое задание")
    require(request.draft_treaty.uuid, "Проект договора")
    require(request.template_tkp.uuid, "Шаблон ТКП")
    if request.request_type == PriceInformationRequestType.PRIVATE and not request.suppliers:
        require("", "Поставщики")
    return messages


def insert_price_information_requests(
    store: Store, requests: Iterable[PriceInformationRequest]
) -> list[int]:
    """Save the requests in one transaction; returns the ids of the new headers."""
    headers: list[RequestHeader] = []
    items: list[RequestItem] = []
    partners: list[RequestPartner] = []
    for request in requests:
        headers.append(request.header)
        items.extend(request.items)
        partners.extend(request.suppliers or [])
    with store.transaction() as tx:
        created = tx.insert(headers)
        tx.insert(items)
        tx.insert(partners)
    return [header.id for header in created]


def _assemble_requests(store: Store, headers: list[RequestHeader]) -> list[PriceInformationRequest]:
    uuids = {header.uuid for header in headers}
    items = _group(
        store.select(RequestItem, lambda i: i.request_uuid in uuids), lambda i: i.request_uuid
    )
    suppliers = _group(
        store.select(RequestPartner, lambda p: p.request_uuid in uuids), lambda p: p.request_uuid
    )
    return [
        PriceInformationRequest(
            header=header,
            items=items.get(header.uuid, []),
            suppliers=suppliers.get(header.uuid),
        )
        for header in headers
    ]


def requests_by_plan_uuid(store: Store, plan_uuid: UUID) -> list[PriceInformationRequest]:
    """All requests created for a purchase plan."""
    headers = store.select(RequestHeader, lambda h: h.plan_uuid == plan_uuid)
    return _assemble_requests(store, headers)


def requests_by_plan_uuids(
    store: Store, plan_uuids: Iterable[UUID]
) -> dict[UUID, list[PriceInformationRequest]]:
    """Requests grouped by the plan they belong to."""
    wanted = set(plan_uuids)
    headers = store.select(
        RequestHeader, lambda h: h.plan_uuid is not None and h.plan_uuid in wanted
    )
    result: dict[UUID, list[PriceInformationRequest]] = defaultdict(list)
    for request in _assemble_requests(store, headers):
        result[request.header.plan_uuid].append(request)
    return dict(result)


def _assemble_proposals(
    store: Store, headers: list[ProposalHeader]
) -> list[TechnicalCommercialProposal]:
    uuids = {header.uuid for header in headers}
    items = _group(
        store.select(ProposalItem, lambda i: i.proposal_uuid in uuids), lambda i: i.proposal_uuid
    )
    return [
        TechnicalCommercialProposal(header=header, items=items.get(header.uuid, []))
        for header in headers
    ]


def proposals_by_request_uuid(
    store: Store, request_uuid: UUID
) -> list[TechnicalCommercialProposal]:
    """All proposals sent in answer to one request."""
    headers = store.select(ProposalHeader, lambda h: h.request_uuid == request_uuid)
    return _assemble_proposals(store, headers)


def proposals_by_request_uuids(
    store: Store, request_uuids: Iterable[UUID]
) -> dict[UUID, list[TechnicalCommercialProposal]]:
    """Proposals grouped by the request they answer."""
    wanted = set(request_uuids)
    headers = store.select(ProposalHeader, lambda h: h.request_uuid in wanted)
    result: dict[UUID, list[TechnicalCommercialProposal]] = defaultdict(list)
    for proposal in _assemble_proposals(store, headers):
        result[proposal.header.request_uuid].append(proposal)
    return dict(result)


def _detail(
    store: Store, predicate: Callable[[RequestHeader], bool], key: str
) -> PriceInformationDetail:
    header = next(iter(store.select(RequestHeader, predicate)), None)
    if header is None:
        raise RecordNotFoundError(key, RequestHeader.TABLE)
    items = sorted(
        store.select(RequestItem, lambda i: i.request_uuid == header.uuid),
        key=lambda i: i.uuid,
    )
    suppliers = store.select(RequestPartner, lambda p: p.request_uuid == header.uuid)
    return PriceInformationDetail(header=header, items=items, suppliers=suppliers)


def price_information_detail_by_id(store: Store, request_id: int) -> PriceInformationDetail:
    """Detail of the request with the given header id."""
    return _detail(store, lambda h: h.id == request_id, str(request_id))


def price_information_detail_by_uuid(
    store: Store, request_uuid: UUID
) -> PriceInformationDetail:
    """Detail of the request with the given header uuid."""
    return _detail(store, lambda h: h.uuid == request_uuid, str(request_uuid))