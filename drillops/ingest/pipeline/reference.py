"""Reference-data snapshot used to resolve rig and project names to ids."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from sqlalchemy import select

from drillops.models import Project, Rig, db

_WHITESPACE = re.compile(r"\s+")


def compact_key(name: object) -> str:
    """Lower-case ``name`` with all whitespace removed."""

    return _WHITESPACE.sub("", str(name).lower())


def plain_key(name: object) -> str:
    return str(name).lower().strip()


@dataclass
class ReferenceLookup:
    """
    Case and whitespace-insensitive name index for one reference category.

    Each entity is indexed under its whitespace-stripped lower-case name and
    its plain lower-case name. When two entities share a key the one with the
    lower id keeps it.
    """

    category: str
    _compact: dict[str, int] = field(default_factory=dict)
    _plain: dict[str, int] = field(default_factory=dict)
    _names: list[str] = field(default_factory=list)

    @classmethod
    def from_pairs(cls, category: str, pairs: Iterable[Tuple[int, str]]) -> "ReferenceLookup":
        lookup = cls(category)
        for entity_id, name in pairs:
            lookup.add(entity_id, name)
        return lookup

    def add(self, entity_id: int, name: str) -> None:
        self._compact.setdefault(compact_key(name), entity_id)
        self._plain.setdefault(plain_key(name), entity_id)
        self._names.append(name)

    def resolve(self, name: object | None) -> int | None:
        if name is None:
            return None
        entity_id = self._compact.get(compact_key(name))
        if entity_id is not None:
            return entity_id
        return self._plain.get(plain_key(name))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._names, key=str.lower))

    def __len__(self) -> int:
        return len(self._names)


@dataclass
class ReferenceDirectory:
    """Snapshot of every rig and project, rebuilt for each validation pass."""

    rigs: ReferenceLookup
    projects: ReferenceLookup


def build_reference_directory(*, session=None) -> ReferenceDirectory:
    session = session or db.session
    rig_rows = session.execute(select(Rig.id, Rig.name).order_by(Rig.id)).all()
    project_rows = session.execute(select(Project.id, Project.name).order_by(Project.id)).all()
    return ReferenceDirectory(
        rigs=ReferenceLookup.from_pairs("rig", ((row.id, row.name) for row in rig_rows)),
        projects=ReferenceLookup.from_pairs("project", ((row.id, row.name) for row in project_rows)),
    )
