"""Attachments, organizations and the client of the monolith service."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

FILE_KIND = 1
FOLDER_KIND = 2


class FoldersCategory(enum.Enum):
    """Category of an attachment folder; the value is its display name."""

    TECHNICAL_SPECIFICATION = "Техническое задание"
    CONTRACT_DOCUMENTS = "Проект договора"
    TENDER_DOCUMENTATION = "Документ ТКП"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Attachment:
    """A folder or a file in an attachment hierarchy."""

    id: int = 0
    kind_id: int = 0
    parent_id: int | None = None
    category_id: FoldersCategory | None = None
    name: str = ""
    is_removed: bool = False
    is_classified: bool = False


@dataclass
class Hierarchy:
    """Attachment tree of one object."""

    uuid: UUID
    item_list: list[Attachment] = field(default_factory=list)


@dataclass(frozen=True)
class Organization:
    """An organization known to the monolith."""

    id: int
    text: str


class MonolithClient:
    """Directory of organizations and attachment hierarchies kept by the monolith."""

    def __init__(
        self,
        organizations: Iterable[Organization] = (),
        hierarchies: Iterable[Hierarchy] = (),
    ) -> None:
        self._organizations = {org.id: org for org in organizations}
        self._hierarchies = {h.uuid: h for h in hierarchies}

    def search_organization_by_id(
        self, ids: Iterable[int], token: str, user_id: int
    ) -> list[Organization]:
        """Organizations with the given ids, each once, in the order asked; unknown ids are skipped."""
        found: dict[int, Organization] = {}
        for org_id in ids:
            org = self._organizations.get(org_id)
            if org is not None:
                found.setdefault(org_id, org)
        return list(found.values())

    def get_hierarchy(
        self, hierarchy_uuids: Iterable[UUID], token: str, user_id: int
    ) -> list[Hierarchy]:
        """Hierarchies with the given uuids; unknown uuids are skipped."""
        found: dict[UUID, Hierarchy] = {}
        for uuid in hierarchy_uuids:
            hierarchy = self._hierarchies.get(uuid)
            if hierarchy is not None:
                found.setdefault(uuid, hierarchy)
        return list(found.values())


def _is_live_file_in(file: Attachment, folder: Attachment) -> bool:
    return (
        file.kind_id == FILE_KIND
        and file.parent_id == folder.id
        and not file.is_removed
        and not file.is_classified
    )


def has_valid_file(attachments: Iterable[Attachment], category: FoldersCategory) -> bool:
    """Whether some folder of the category holds a file that is neither removed nor classified."""
    attachments = list(attachments)
    folders = (
        a for a in attachments if a.kind_id == FOLDER_KIND and a.category_id == category
    )
    return any(
        any(_is_live_file_in(file, folder) for file in attachments) for folder in folders
    )