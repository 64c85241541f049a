"""Listing of price information requests and proposals for other services."""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from tcproposal.messages import ApiResponse, Messages, PaginatedData, TcpError
from tcproposal.requests import (
    PriceInformationRequest,
    TechnicalCommercialProposal,
    proposals_by_request_uuid,
    proposals_by_request_uuids,
    requests_by_plan_uuid,
    requests_by_plan_uuids,
)
from tcproposal.store import Store


def _uuid_from_path(path: str) -> UUID:
    try:
        return UUID(path)
    except (ValueError, AttributeError, TypeError) as exc:
        raise TcpError(f"Некорректный UUID: {path!r}") from exc


def get_requests_by_plan_uuid(
    store: Store, path: str
) -> ApiResponse[PaginatedData[PriceInformationRequest]]:
    """Requests of the purchase plan whose uuid is given as text."""
    data = requests_by_plan_uuid(store, _uuid_from_path(path))
    return ApiResponse(PaginatedData(data), Messages())


def get_requests_by_plan_uuids(
    store: Store, plan_uuids: Iterable[UUID]
) -> ApiResponse[dict[UUID, list[PriceInformationRequest]]]:
    """Requests grouped by purchase plan."""
    return ApiResponse(requests_by_plan_uuids(store, plan_uuids), Messages())


def get_proposals_by_request_uuid(
    store: Store, path: str
) -> ApiResponse[PaginatedData[TechnicalCommercialProposal]]:
    """Proposals answering the request whose uuid is given as text."""
    data = proposals_by_request_uuid(store, _uuid_from_path(path))
    return ApiResponse(PaginatedData(data), Messages())


def get_proposals_by_request_uuids(
    store: Store, request_uuids: Iterable[UUID]
) -> ApiResponse[dict[UUID, list[TechnicalCommercialProposal]]]:
    """Proposals grouped by request."""
    return ApiResponse(proposals_by_request_uuids(store, request_uuids), Messages())