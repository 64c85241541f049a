"""Completeness check of a price information request before it is published."""

from __future__ import annotations

from dataclasses import dataclass, field

from tcproposal.domain import (
    PriceInformationRequestType,
    RequestHeader,
    RequestItem,
    RequestPartner,
)
from tcproposal.messages import Message, Messages
from tcproposal.monolith import FILE_KIND, FOLDER_KIND, Attachment, FoldersCategory

_TEXT_FIELDS = (
    ("request_subject", "Предмет ЗЦИ"),
    ("organizer_name", "Контактное лицо"),
    ("organizer_mail", "Электронный адрес"),
    ("organizer_phone", "Телефон"),
    ("organizer_location", "Местонахождение"),
)
_REQUIRED_ATTACHMENTS = (
    FoldersCategory.TECHNICAL_SPECIFICATION,
    FoldersCategory.CONTRACT_DOCUMENTS,
)


@dataclass
class UpdatePriceInformationRequest:
    """A price information request as edited by the user."""

    header: RequestHeader = field(default_factory=RequestHeader)
    partner_list: list[RequestPartner] = field(default_factory=list)
    attachment_list: list[Attachment] = field(default_factory=list)
    item_list: list[RequestItem] = field(default_factory=list)


def _fill_field(name: str, field_name: str) -> Message:
    return Message.info(f'Заполните поле "{name}"').with_fields([field_name])


def _has_attachment(attachments: list[Attachment], category: FoldersCategory) -> bool:
    folder = next(
        (a for a in attachments if a.kind_id == FOLDER_KIND and a.category_id == category),
        None,
    )
    if folder is None:
        return False
    return any(
        a.kind_id == FILE_KIND
        and a.parent_id == folder.id
        and not a.is_removed
        and not a.is_classified
        for a in attachments
    )


def check_request_price_info(request: UpdatePriceInformationRequest) -> Messages:
    """Messages for everything still missing from the request."""
    messages = Messages()
    header = request.header

    if not header.type_request_id:
        messages.add(_fill_field("Тип ЗЦИ", "type_request_id"))

    for field_name, name in _TEXT_FIELDS:
        if not getattr(header, field_name):
            messages.add(_fill_field(name, field_name))

    if header.type_request_id == PriceInformationRequestType.PRIVATE:
        if not header.request_type_text:
            messages.add(
                Message.error('Для закрытого ЗЦИ заполните поле "Обоснование"').with_fields(
                    ["request_type_text"]
                )
            )
        if not request.partner_list:
            messages.add(Message.info("Заполните данные организаций"))

    for category in _REQUIRED_ATTACHMENTS:
        if not _has_attachment(request.attachment_list, category):
            messages.add(Message.info(f"Прикрепите {category}"))

    if not request.item_list:
        messages.add(Message.info("Заполните данные спецификации"))

    return messages