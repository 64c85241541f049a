from uuid import UUID

import pytest

from tcproposal.monolith import (
    Attachment,
    FoldersCategory,
    Hierarchy,
    MonolithClient,
    Organization,
    has_valid_file,
)

TENDER = FoldersCategory.TENDER_DOCUMENTATION


def _folder(folder_id=1, category=TENDER):
    return Attachment(id=folder_id, kind_id=2, category_id=category)


@pytest.mark.parametrize(
    "member, name",
    [
        (FoldersCategory.TENDER_DOCUMENTATION, "Документ ТКП"),
        (FoldersCategory.TECHNICAL_SPECIFICATION, "Техническое задание"),
        (FoldersCategory.CONTRACT_DOCUMENTS, "Проект договора"),
    ],
)
def test_category_display_names(member, name):
    category = FoldersCategory(member.value)
    assert category is member
    assert str(category) == name


def test_valid_file_found():
    items = [_folder(), Attachment(id=2, kind_id=1, parent_id=1)]
    assert has_valid_file(items, TENDER) is True


def test_folder_without_file():
    assert has_valid_file([_folder()], TENDER) is False


def test_removed_or_classified_file_does_not_count():
    items = [
        _folder(),
        Attachment(id=2, kind_id=1, parent_id=1, is_removed=True),
        Attachment(id=3, kind_id=1, parent_id=1, is_classified=True),
    ]
    assert has_valid_file(items, TENDER) is False


def test_file_in_folder_of_other_category():
    items = [
        _folder(category=FoldersCategory.CONTRACT_DOCUMENTS),
        Attachment(id=2, kind_id=1, parent_id=1),
    ]
    assert has_valid_file(items, TENDER) is False


def test_any_matching_folder_is_enough():
    items = [
        _folder(1),
        _folder(5),
        Attachment(id=2, kind_id=1, parent_id=5),
    ]
    assert has_valid_file(items, TENDER) is True


def test_search_organization_skips_unknown_and_duplicates():
    client = MonolithClient(organizations=[Organization(1, "A"), Organization(2, "B")])
    found = client.search_organization_by_id([2, 3, 2, 1], "token", 0)
    assert found == [Organization(2, "B"), Organization(1, "A")]


def test_get_hierarchy():
    u1 = UUID(int=1)
    hierarchy = Hierarchy(u1, [_folder()])
    client = MonolithClient(hierarchies=[hierarchy])
    assert client.get_hierarchy([u1, UUID(int=2)], "token", 0) == [hierarchy]
    assert client.get_hierarchy([UUID(int=2)], "token", 0) == []