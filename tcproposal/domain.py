"""Records and statuses of price information requests and proposals."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from tcproposal.messages import ParamItem

NIL_UUID = UUID(int=0)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PriceInformationRequestStatus(enum.IntEnum):
    """Status of a price information request."""

    CREATED = 10
    TCP_PROJECT = 70
    ACCEPTING_INCOMING_TCPS = 90
    TRANSFER_TO_ETP_ERROR = 100
    ENTRY_CLOSED = 110
    ENTRY_CLOSED_EARLY = 120
    ERROR_PUBLISHING_CHANGES = 150
    DELETED = 160


class PriceInformationRequestType(enum.IntEnum):
    """Type of a price information request; unknown codes mean not set."""

    NOT_SET = 0
    PUBLIC = 1
    PRIVATE = 2

    @classmethod
    def _missing_(cls, value: object) -> PriceInformationRequestType:
        return cls.NOT_SET


class TcpGeneralStatus(enum.IntEnum):
    """General status of a commercial proposal."""

    PROJECT = 10
    RECEIVED = 20
    DELETED = 30


class TCPCheckStatus(enum.IntEnum):
    """Review status of a commercial proposal."""

    NEW = 10
    REVIEW = 30
    REVIEWED = 40


class TCPReviewResult(enum.IntEnum):
    """Whether a proposal is taken into account when pricing."""

    CONSIDER = 50
    IGNORE = 60


@dataclass
class ObjectIdentifier:
    """Identifier pair of an object."""

    id: int = 0
    uuid: UUID = NIL_UUID


@dataclass
class RequestHeader:
    """Header of a price information request."""

    TABLE: ClassVar[str] = "request_head"

    id: int = 0
    uuid: UUID = NIL_UUID
    plan_uuid: UUID | None = None
    plan_id: int | None = None
    status_id: PriceInformationRequestStatus = PriceInformationRequestStatus.CREATED
    type_request_id: PriceInformationRequestType | None = None
    request_type_text: str | None = None
    request_subject: str | None = None
    organizer_name: str | None = None
    organizer_mail: str | None = None
    organizer_phone: str | None = None
    organizer_location: str | None = None
    currency_id: int | None = None
    start_date: datetime | None = None
    end_date: date | datetime | None = None
    reason_closing: str | None = None
    created_by: int = 0
    created_at: datetime = field(default_factory=_now)
    changed_by: int = 0
    changed_at: datetime = field(default_factory=_now)


@dataclass
class RequestItem:
    """Position of a price information request."""

    TABLE: ClassVar[str] = "request_item"

    uuid: UUID = NIL_UUID
    request_uuid: UUID = NIL_UUID
    plan_item_uuid: UUID = NIL_UUID
    number: int = 0
    description_internal: str | None = None
    unit_id: int = 0
    quantity: Decimal | None = None


@dataclass
class RequestPartner:
    """Supplier invited to a price information request."""

    TABLE: ClassVar[str] = "request_partner"

    uuid: UUID = NIL_UUID
    request_uuid: UUID = NIL_UUID
    supplier_id: int = 0
    number: int = 0
    is_public: bool = False
    is_removed: bool = False
    additional_email: str | None = None


@dataclass
class ProposalHeader:
    """Header of a technical and commercial proposal."""

    TABLE: ClassVar[str] = "proposal_head"

    id: int = 0
    uuid: UUID = NIL_UUID
    request_uuid: UUID = NIL_UUID
    supplier_uuid: UUID = NIL_UUID
    etp_id: int | None = None
    hierarchy_uuid: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    currency_id: int = 0
    status_id: TcpGeneralStatus = TcpGeneralStatus.PROJECT
    status_check_id: TCPCheckStatus = TCPCheckStatus.NEW
    result_id: TCPReviewResult | None = None
    receive_date: datetime | None = None
    sum_excluded_vat_total: Decimal | None = None
    contact_phone: str | None = None
    created_by: int = 0
    created_at: datetime = field(default_factory=_now)
    changed_by: int = 0
    changed_at: datetime = field(default_factory=_now)


@dataclass
class ProposalItem:
    """Position of a technical and commercial proposal."""

    TABLE: ClassVar[str] = "proposal_item"

    uuid: UUID = NIL_UUID
    number: int = 0
    proposal_uuid: UUID = NIL_UUID
    request_item_uuid: UUID = NIL_UUID
    description_internal: str | None = None
    quantity: Decimal | None = None
    unit_id: int = 0
    price: Decimal | None = None
    vat_id: int | None = None
    sum_excluded_vat: Decimal | None = None
    sum_included_vat: Decimal | None = None
    manufacturer: str | None = None
    mark: str | None = None
    pay_condition_id: int | None = None
    prepayment_percent: Decimal | None = None
    delivery_condition: str | None = None
    execution_percent: Decimal | None = None
    is_possibility: bool = False
    possibility_note: str | None = None
    analog_description: str | None = None
    delivery_period: str | None = None


def ParamItem_from_header(header: RequestHeader | ProposalHeader) -> ParamItem:
    """Message parameter referring to a request or proposal header."""
    return ParamItem(id=str(header.id), uuid=header.uuid)