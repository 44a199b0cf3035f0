"""Schema model and loader for the access compiler.

Example
-------
::

    from aumos_access_compiler.schema import SchemaLoader

    schema = SchemaLoader().load("permissions.yaml")
    schema.entity_identifiers()
"""
from __future__ import annotations

from aumos_access_compiler.schema.loader import SchemaLoader
from aumos_access_compiler.schema.model import (
    DEFAULT_VERBS,
    GLOBAL_DOMAIN,
    FieldDefinition,
    ResourceDefinition,
    Schema,
    field_identifier,
    split_identifier,
)

__all__ = [
    "DEFAULT_VERBS",
    "GLOBAL_DOMAIN",
    "FieldDefinition",
    "ResourceDefinition",
    "Schema",
    "SchemaLoader",
    "field_identifier",
    "split_identifier",
]
