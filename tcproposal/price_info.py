"""Deletion of price information requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from tcproposal.domain import (
    ObjectIdentifier,
    ParamItem_from_header,
    PriceInformationRequestStatus,
    RequestHeader,
    _now,
)
from tcproposal.messages import (
    ApiResponse,
    BusinessError,
    Message,
    Messages,
    PaginatedData,
    messages_from_success_and_errors,
)
from tcproposal.store import Store

SUCCESS_TEXT = "Выбранные ЗЦИ удалены"
FAIL_TEXT = "Выбранные ЗЦИ опубликованы на ЭТП ГПБ. Удаление невозможно"
FAILED_CHECK_CREATED_BY = "Нет полномочий"
FOREIGN_REQUEST_DESCRIPTION = "Невозможно удалить ЗЦИ, созданный другим пользователем"

_UPDATE_FIELDS = ("changed_at", "changed_by", "status_id")
_DELETABLE = frozenset(
    {
        PriceInformationRequestStatus.TCP_PROJECT,
        PriceInformationRequestStatus.TRANSFER_TO_ETP_ERROR,
    }
)


@dataclass(frozen=True)
class PriceInfoCompleteItem:
    """A request whose status was changed."""

    identifier: ObjectIdentifier
    status_id: PriceInformationRequestStatus


def delete_price_info(
    store: Store, user_id: int, identifiers: Iterable[ObjectIdentifier]
) -> ApiResponse[PaginatedData[PriceInfoCompleteItem]]:
    """Mark as deleted the user's requests that were not yet published.

    Raises BusinessError when any of the requests belongs to another user.
    """
    uuids = {identifier.uuid for identifier in identifiers}
    headers = store.select(RequestHeader, lambda h: h.uuid in uuids)

    foreign = [h for h in headers if h.created_by != user_id]
    if foreign:
        message = (
            Message.error(FAILED_CHECK_CREATED_BY)
            .with_parameters(ParamItem_from_header(h) for h in foreign)
            .with_param_description(FOREIGN_REQUEST_DESCRIPTION)
        )
        raise BusinessError(Messages(messages=[message]))

    now = _now()
    to_delete = []
    ok_params = []
    err_params = []
    for header in headers:
        param = ParamItem_from_header(header)
        if header.status_id in _DELETABLE:
            header.changed_at = now
            header.changed_by = user_id
            header.status_id = PriceInformationRequestStatus.DELETED
            to_delete.append(header)
            ok_params.append(param)
        else:
            err_params.append(param)

    with store.transaction() as tx:
        tx.update(to_delete, _UPDATE_FIELDS)

    data = [
        PriceInfoCompleteItem(ObjectIdentifier(h.id, h.uuid), h.status_id) for h in to_delete
    ]
    messages = messages_from_success_and_errors(
        SUCCESS_TEXT, FAIL_TEXT, "", ok_params, err_params
    )
    return ApiResponse(PaginatedData(data), messages)