"""In-memory schema model: permission verbs, domains, resources and fields.

Instances are created once per loader pass and never mutated.  Permission
rows are stored exactly as authored; a field row is never derived from the
row of the resource that owns it.

Example
-------
>>> field = FieldDefinition("Prototype1", "id", {"Read": True})
>>> field.identifier
'Prototype1.id'
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Mapping

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_VERBS: tuple[str, ...] = ("Create", "Read", "List", "Update", "Delete")

GLOBAL_DOMAIN: str = "global"

FIELD_SEPARATOR: str = "."

IDENTIFIER_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Names taken by the generated declarations themselves.
RESERVED_RESOURCE_NAMES: frozenset[str] = frozenset(
    {
        "Permissions",
        "Resources",
        "AllResources",
        "Mappings",
        "PermissionMappings",
        "PermissionResources",
        "MAPPINGS",
        "requiresPermission",
        "requires_permission",
    }
)

PermissionRow = Mapping[str, bool]


def is_valid_identifier(value: str) -> bool:
    """Return True if *value* can be used as a verb, resource or field name."""
    return bool(IDENTIFIER_PATTERN.match(value))


def field_identifier(resource: str, field_name: str) -> str:
    """Join a resource and a field into a namespaced ``resource.field`` key.

    Raises
    ------
    ValueError
        If *field_name* itself contains the separator.
    """
    if FIELD_SEPARATOR in field_name:
        raise ValueError(
            f"Invalid field name {field_name!r}: must not contain {FIELD_SEPARATOR!r}."
        )
    return f"{resource}{FIELD_SEPARATOR}{field_name}"


def split_identifier(identifier: str) -> tuple[str, str | None]:
    """Split a matrix key into ``(resource, field)``; field is None for resources.

    Raises
    ------
    ValueError
        If the identifier contains more than one separator.
    """
    parts = identifier.split(FIELD_SEPARATOR)
    if len(parts) > 2:
        raise ValueError(
            f"Invalid identifier {identifier!r}: contains more than one {FIELD_SEPARATOR!r}."
        )
    if len(parts) == 2:
        return parts[0], parts[1]
    return parts[0], None


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldDefinition:
    """A named sub-entity owned by exactly one resource.

    Attributes
    ----------
    resource:
        Name of the owning resource.
    name:
        Local field name, unique within the resource.
    permissions:
        The field's own permission row, or ``None`` when none was authored.
    description:
        Free text carried through for documentation purposes.
    """

    resource: str
    name: str
    permissions: PermissionRow | None = field(default=None, hash=False)
    description: str = ""

    @property
    def identifier(self) -> str:
        return field_identifier(self.resource, self.name)


@dataclass(frozen=True)
class ResourceDefinition:
    """A named top-level entity with its default row and owned fields."""

    name: str
    permissions: PermissionRow | None = field(default=None, hash=False)
    fields: tuple[FieldDefinition, ...] = ()
    domain: str | None = None
    description: str = ""

    @property
    def identifier(self) -> str:
        return self.name

    @property
    def field_identifiers(self) -> list[str]:
        return [f.identifier for f in self.fields]


@dataclass(frozen=True)
class Schema:
    """A complete, loaded permission schema.

    Attributes
    ----------
    verbs:
        Declared permission verbs in declaration order.
    resources:
        Resources in declaration order.
    domains:
        Declared domains.  Empty when the schema is domain-agnostic.
    name:
        Schema name, used as the Go package name and in summaries.
    """

    verbs: tuple[str, ...] = DEFAULT_VERBS
    resources: tuple[ResourceDefinition, ...] = ()
    domains: tuple[str, ...] = ()
    name: str = "permissions"

    def iter_entities(self) -> Iterator[tuple[str, ResourceDefinition, FieldDefinition | None]]:
        """Yield ``(identifier, resource, field)`` in declaration order.

        Each resource comes first, followed by its fields.
        """
        for resource in self.resources:
            yield resource.identifier, resource, None
            for field_def in resource.fields:
                yield field_def.identifier, resource, field_def

    def entity_identifiers(self) -> list[str]:
        return [identifier for identifier, _, _ in self.iter_entities()]

    def get_resource(self, name: str) -> ResourceDefinition:
        """Return the resource called *name*.

        Raises
        ------
        KeyError
            If no such resource is declared.
        """
        for resource in self.resources:
            if resource.name == name:
                return resource
        raise KeyError(name)

    @property
    def field_count(self) -> int:
        return sum(len(r.fields) for r in self.resources)
