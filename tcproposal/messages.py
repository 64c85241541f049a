"""Response messages, response envelopes and service errors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Generic, Iterable, Iterator, TypeVar
from uuid import UUID

T = TypeVar("T")


class MessageKind(enum.Enum):
    """Kind of a user-facing message."""

    SUCCESS = "success"
    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"


_SEVERITY = {
    MessageKind.SUCCESS: 0,
    MessageKind.INFORMATION: 1,
    MessageKind.WARNING: 2,
    MessageKind.ERROR: 3,
}


class Status(enum.Enum):
    """Overall status of a response."""

    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class ParamItem:
    """Reference to an object a message is about."""

    id: str = ""
    uuid: UUID | None = None

    @classmethod
    def from_id(cls, value: object) -> ParamItem:
        return cls(id=str(value))


@dataclass(frozen=True)
class Params:
    """Objects a message refers to, with an optional description."""

    description: str = ""
    item_list: tuple[ParamItem, ...] = ()


@dataclass(frozen=True)
class Message:
    """A single message returned to the client."""

    kind: MessageKind
    text: str
    parameters: Params = field(default_factory=Params)
    fields: tuple[str, ...] = ()

    @classmethod
    def success(cls, text: str) -> Message:
        return cls(MessageKind.SUCCESS, text)

    @classmethod
    def error(cls, text: str) -> Message:
        return cls(MessageKind.ERROR, text)

    @classmethod
    def info(cls, text: str) -> Message:
        return cls(MessageKind.INFORMATION, text)

    @classmethod
    def warning(cls, text: str) -> Message:
        return cls(MessageKind.WARNING, text)

    def with_param_item(self, item: ParamItem) -> Message:
        params = replace(self.parameters, item_list=self.parameters.item_list + (item,))
        return replace(self, parameters=params)

    def with_parameters(self, items: Iterable[ParamItem]) -> Message:
        return replace(self, parameters=replace(self.parameters, item_list=tuple(items)))

    def with_param_description(self, description: str) -> Message:
        return replace(self, parameters=replace(self.parameters, description=description))

    def with_fields(self, fields: Iterable[str]) -> Message:
        return replace(self, fields=tuple(fields))


@dataclass
class Messages:
    """Ordered collection of messages; its kind is the most severe one seen."""

    kind: MessageKind = MessageKind.SUCCESS
    messages: list[Message] = field(default_factory=list)

    def __post_init__(self) -> None:
        for message in self.messages:
            self._escalate(message.kind)

    def _escalate(self, kind: MessageKind) -> None:
        if _SEVERITY[kind] > _SEVERITY[self.kind]:
            self.kind = kind

    def add(self, message: Message) -> None:
        self.messages.append(message)
        self._escalate(message.kind)

    def is_error(self) -> bool:
        return self.kind is MessageKind.ERROR

    def is_warn(self) -> bool:
        return self.kind is MessageKind.WARNING

    def is_empty(self) -> bool:
        return not self.messages

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class PaginatedData(Generic[T]):
    """A page of items with the total count."""

    item_list: list[T] = field(default_factory=list)
    total: int | None = None

    def __post_init__(self) -> None:
        self.item_list = list(self.item_list)
        if self.total is None:
            self.total = len(self.item_list)


@dataclass
class ApiResponse(Generic[T]):
    """Response envelope: data, messages and status."""

    data: T
    messages: Messages = field(default_factory=Messages)
    status: Status = Status.OK


class TcpError(Exception):
    """Base error of the service."""


class BusinessError(TcpError):
    """A business rule was violated; carries the messages for the client."""

    def __init__(self, messages: Messages) -> None:
        super().__init__("; ".join(m.text for m in messages.messages))
        self.messages = messages


class RecordNotFoundError(TcpError):
    """A record looked up by key does not exist."""

    def __init__(self, key: str, table: str) -> None:
        super().__init__(f"Запись {key} не найдена в таблице {table}")
        self.key = key
        self.table = table


class MonolithError(TcpError):
    """The monolith service returned an unusable answer."""


class InternalError(TcpError):
    """An unexpected internal state."""


class ExportError(TcpError):
    """Export of data failed."""


def messages_from_success_and_errors(
    success_text: str,
    error_text: str,
    error_description: str,
    ok_params: Iterable[ParamItem],
    err_params: Iterable[ParamItem],
) -> Messages:
    """Build one success message for processed items and one error for the rest."""
    messages = Messages()
    ok_params = list(ok_params)
    err_params = list(err_params)
    if ok_params:
        messages.add(Message.success(success_text).with_parameters(ok_params))
    if err_params:
        messages.add(
            Message.error(error_text)
            .with_parameters(err_params)
            .with_param_description(error_description)
        )
    return messages