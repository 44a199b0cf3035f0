"""The expanded permission matrix.

A PermissionMatrix is a flat, ordered sequence of entries keyed by a
namespaced identifier (``Resource`` or ``Resource.field``).  Each entry holds
one complete permission row.  Entries keep declaration order, which is the
only order emitters ever use.

Example
-------
::

    matrix = MatrixBuilder().build(schema)
    matrix.requires_permission("Prototype1", "List")
    # True
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class MatrixEntry:
    """One row of the matrix.

    Attributes
    ----------
    identifier:
        Namespaced key of the entity.
    resource:
        Name of the resource the entity is, or belongs to.
    field:
        Local field name, or ``None`` for a resource row.
    cells:
        ``(verb, value)`` pairs, declared verbs first in declaration order.
    domain:
        Domain scoping the owning resource, if any.
    """

    identifier: str
    resource: str
    field: str | None
    cells: tuple[tuple[str, bool], ...]
    domain: str | None = None

    @property
    def is_field(self) -> bool:
        return self.field is not None

    @property
    def verbs(self) -> tuple[str, ...]:
        return tuple(verb for verb, _ in self.cells)

    def allows(self, verb: str) -> bool:
        for cell_verb, value in self.cells:
            if cell_verb == verb:
                return value
        raise KeyError(f"No entry for verb {verb!r} in row {self.identifier!r}")

    def as_dict(self) -> dict[str, bool]:
        return dict(self.cells)


@dataclass(frozen=True)
class PermissionMatrix:
    """Fully expanded mapping from entity identifier to permission row.

    The matrix is immutable; rebuild it from the schema to change it.
    """

    verbs: tuple[str, ...]
    entries: tuple[MatrixEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[MatrixEntry]:
        return iter(self.entries)

    def __contains__(self, identifier: object) -> bool:
        return any(entry.identifier == identifier for entry in self.entries)

    def identifiers(self) -> list[str]:
        return [entry.identifier for entry in self.entries]

    def get(self, identifier: str) -> MatrixEntry:
        """Return the first entry for *identifier*.

        Raises
        ------
        KeyError
            If the matrix has no row for the identifier.
        """
        for entry in self.entries:
            if entry.identifier == identifier:
                return entry
        raise KeyError(f"No permission row for {identifier!r}")

    def requires_permission(self, entity: str, verb: str) -> bool:
        """Return the table value for ``(entity, verb)``.

        Raises
        ------
        KeyError
            If the entity or the verb is absent.
        """
        return self.get(entity).allows(verb)

    def granted(self, verb: str) -> list[str]:
        """Return identifiers whose row grants *verb*, in declaration order."""
        return [
            entry.identifier
            for entry in self.entries
            if dict(entry.cells).get(verb) is True
        ]

    def domain_of(self, identifier: str) -> str | None:
        """Return the domain scoping the entity, or ``None`` if domain-agnostic."""
        return self.get(identifier).domain

    def resources(self) -> list[MatrixEntry]:
        return [entry for entry in self.entries if not entry.is_field]

    def fields_of(self, resource: str) -> list[MatrixEntry]:
        return [
            entry
            for entry in self.entries
            if entry.is_field and entry.resource == resource
        ]

    def as_dict(self) -> dict[str, dict[str, bool]]:
        """Return the matrix as a nested ``{identifier: {verb: bool}}`` mapping."""
        return {entry.identifier: entry.as_dict() for entry in self.entries}
