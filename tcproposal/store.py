"""In-memory record store with transactions."""

from __future__ import annotations

import copy
import dataclasses
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, TypeVar
from uuid import UUID

from tcproposal.messages import InternalError, RecordNotFoundError

R = TypeVar("R")


def _table_name(model: type) -> str:
    return getattr(model, "TABLE", model.__name__)


def _field_names(model: type) -> set[str]:
    return {f.name for f in dataclasses.fields(model)}


class Store:
    """Keeps records by model type and uuid; hands out copies only."""

    def __init__(self) -> None:
        self._tables: dict[type, dict[UUID, Any]] = {}
        self._sequences: dict[type, int] = {}

    @contextmanager
    def transaction(self) -> Iterator[Store]:
        """Roll back every change made inside the block if it raises."""
        snapshot = copy.deepcopy((self._tables, self._sequences))
        try:
            yield self
        except BaseException:
            self._tables, self._sequences = snapshot
            raise

    def next_id(self, model: type) -> int:
        value = self._sequences.get(model, 0) + 1
        self._sequences[model] = value
        return value

    def insert(self, records: Iterable[R]) -> list[R]:
        """Store new records; a zero ``id`` is replaced by the next sequence value.

        The assigned id is also written to the record passed in.
        """
        records = list(records)
        seen: set[tuple[type, UUID]] = set()
        for record in records:
            key = (type(record), record.uuid)
            if key in seen or record.uuid in self._tables.get(type(record), {}):
                raise ValueError(
                    f"Запись {record.uuid} уже существует в таблице {_table_name(type(record))}"
                )
            seen.add(key)

        stored = []
        for record in records:
            model = type(record)
            if "id" in _field_names(model):
                if record.id == 0:
                    record.id = self.next_id(model)
                else:
                    self._sequences[model] = max(self._sequences.get(model, 0), record.id)
            kept = copy.deepcopy(record)
            self._tables.setdefault(model, {})[record.uuid] = kept
            stored.append(copy.deepcopy(kept))
        return stored

    def select(
        self, model: type[R], predicate: Callable[[R], bool] | None = None
    ) -> list[R]:
        """Copies of the records of a model that satisfy the predicate, in insertion order."""
        return [
            copy.deepcopy(record)
            for record in self._tables.get(model, {}).values()
            if predicate is None or predicate(record)
        ]

    def select_one(
        self, model: type[R], predicate: Callable[[R], bool] | None = None
    ) -> R:
        """The single matching record; raises if there is none or more than one."""
        found = self.select(model, predicate)
        if not found:
            raise RecordNotFoundError("по условию выборки", _table_name(model))
        if len(found) > 1:
            raise InternalError(
                f"Найдено {len(found)} записей в таблице {_table_name(model)} вместо одной"
            )
        return found[0]

    def update(
        self, records: Iterable[R], fields: Iterable[str] | None = None
    ) -> list[R]:
        """Write the given fields (all when None) of existing records, matched by uuid."""
        records = list(records)
        names = None if fields is None else list(fields)
        for record in records:
            model = type(record)
            if record.uuid not in self._tables.get(model, {}):
                raise RecordNotFoundError(str(record.uuid), _table_name(model))
            if names is not None:
                unknown = set(names) - _field_names(model)
                if unknown:
                    raise ValueError(
                        f"Неизвестные поля {sorted(unknown)} для таблицы {_table_name(model)}"
                    )

        updated = []
        for record in records:
            model = type(record)
            stored = self._tables[model][record.uuid]
            for name in names if names is not None else _field_names(model):
                setattr(stored, name, copy.deepcopy(getattr(record, name)))
            updated.append(copy.deepcopy(stored))
        return updated