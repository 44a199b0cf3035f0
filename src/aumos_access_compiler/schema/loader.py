"""YAML schema loader for the access compiler.

SchemaLoader reads a permission schema document and builds an immutable
:class:`~aumos_access_compiler.schema.model.Schema`.  Structure is checked
with Pydantic models; identifier and verb rules are checked afterwards and
every semantic problem is collected before anything is raised.

Schema
------
::

    version: "1"
    name: permissions
    permissions: [Create, Read, List, Update, Delete]
    domains: [global, tenant]
    resources:
      - name: Prototype1
        domain: global
        permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}
        fields:
          - name: id
            permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}
    # Fields may also be declared separately from their resource.
    fields:
      - resource: Prototype1
        name: protocol
        permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}

Example
-------
::

    loader = SchemaLoader()
    schema = loader.load("permissions.yaml")
    [r.name for r in schema.resources]
"""
from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType

import yaml
from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError, field_validator

from aumos_access_compiler.errors import (
    SchemaProblem,
    SchemaSemanticError,
    SchemaSyntaxError,
)
from aumos_access_compiler.schema.model import (
    DEFAULT_VERBS,
    FIELD_SEPARATOR,
    GLOBAL_DOMAIN,
    RESERVED_RESOURCE_NAMES,
    FieldDefinition,
    ResourceDefinition,
    Schema,
    is_valid_identifier,
)

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1.0", "1"])

# ---------------------------------------------------------------------------
# Document models
# ---------------------------------------------------------------------------


class FieldDocument(BaseModel):
    """A field entry nested under a resource."""

    model_config = {"extra": "allow"}

    name: StrictStr
    description: str = ""
    permissions: dict[str, StrictBool] | None = None


class DetachedFieldDocument(FieldDocument):
    """A field entry declared in the top-level ``fields`` list."""

    resource: StrictStr


class ResourceDocument(BaseModel):
    """A resource entry in the ``resources`` list."""

    model_config = {"extra": "allow", "populate_by_name": True}

    name: StrictStr
    domain: StrictStr | None = None
    description: str = ""
    permissions: dict[str, StrictBool] | None = None
    field_entries: list[FieldDocument] = Field(default_factory=list, alias="fields")


class SchemaDocument(BaseModel):
    """Top-level schema document."""

    model_config = {"extra": "allow", "populate_by_name": True}

    version: str = "1"
    name: StrictStr = "permissions"
    description: str = ""
    permissions: list[StrictStr] = Field(default_factory=lambda: list(DEFAULT_VERBS))
    domains: list[StrictStr] = Field(default_factory=list)
    resources: list[ResourceDocument] = Field(default_factory=list)
    field_entries: list[DetachedFieldDocument] = Field(default_factory=list, alias="fields")

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: object) -> str:
        if isinstance(value, (int, float)):
            return str(value)
        return value  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class SchemaLoader:
    """Loads :class:`Schema` instances from YAML files, strings or dicts.

    Parameters
    ----------
    strict:
        When ``True``, unknown keys anywhere in the document are a
        :class:`SchemaSyntaxError`.  Default ``False`` (unknown keys are
        logged and ignored).

    Examples
    --------
    ::

        loader = SchemaLoader()
        schema = loader.load_from_dict({
            "permissions": ["Read", "Update"],
            "resources": [
                {"name": "Account", "permissions": {"Read": True, "Update": False}},
            ],
        })
        assert schema.resources[0].name == "Account"
    """

    _KNOWN_TOP_KEYS: frozenset[str] = frozenset(
        ["version", "name", "description", "permissions", "domains", "resources", "fields"]
    )
    _KNOWN_RESOURCE_KEYS: frozenset[str] = frozenset(
        ["name", "domain", "description", "permissions", "fields"]
    )
    _KNOWN_FIELD_KEYS: frozenset[str] = frozenset(
        ["name", "resource", "description", "permissions"]
    )

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def load(self, schema_path: str | Path) -> Schema:
        """Load a schema from a YAML file on disk.

        Raises
        ------
        FileNotFoundError
            If the schema file does not exist.
        SchemaSyntaxError
            If the file cannot be parsed or is structurally invalid.
        SchemaSemanticError
            If identifiers or verbs break the schema rules.
        """
        schema_path = Path(schema_path)
        if not schema_path.exists():
            raise FileNotFoundError(f"Permission schema not found: {schema_path}")

        with schema_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
        return self.load_from_yaml_string(text, source=str(schema_path))

    def load_from_yaml_string(self, yaml_string: str, source: str | None = None) -> Schema:
        """Load a schema from YAML text."""
        try:
            raw = yaml.safe_load(yaml_string)
        except yaml.YAMLError as exc:
            raise SchemaSyntaxError(f"Failed to parse YAML: {exc}", source) from exc
        return self.load_from_dict(raw if raw is not None else {}, source=source)

    def load_from_dict(self, raw: dict[str, object], source: str | None = None) -> Schema:
        """Load a schema from an already-parsed document."""
        document = self._parse_document(raw, source)
        schema = self._build_schema(document, source)
        logger.info(
            "Loaded schema %r from %s: %d verbs, %d resources, %d fields",
            schema.name,
            source or "<dict>",
            len(schema.verbs),
            len(schema.resources),
            schema.field_count,
        )
        return schema

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_document(self, raw: object, source: str | None) -> SchemaDocument:
        if not isinstance(raw, dict):
            raise SchemaSyntaxError("Permission schema must be a YAML mapping (dict).", source)

        try:
            document = SchemaDocument.model_validate(raw)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
                for error in exc.errors()
            )
            raise SchemaSyntaxError(f"Invalid schema structure: {details}", source) from exc

        version = document.version
        if version not in _SUPPORTED_VERSIONS:
            raise SchemaSyntaxError(
                f"Unsupported schema version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}.",
                source,
            )

        self._check_unknown_keys(raw, document, source)
        return document

    def _check_unknown_keys(
        self,
        raw: dict[str, object],
        document: SchemaDocument,
        source: str | None,
    ) -> None:
        unknown: list[str] = sorted(set(raw) - self._KNOWN_TOP_KEYS)
        for resource in document.resources:
            unknown.extend(
                f"resources.{resource.name}.{key}"
                for key in sorted(set(resource.model_extra or {}) - self._KNOWN_RESOURCE_KEYS)
            )
            for field_doc in resource.field_entries:
                unknown.extend(
                    f"resources.{resource.name}.fields.{field_doc.name}.{key}"
                    for key in sorted(set(field_doc.model_extra or {}) - self._KNOWN_FIELD_KEYS)
                )
        for field_doc in document.field_entries:
            unknown.extend(
                f"fields.{field_doc.resource}.{field_doc.name}.{key}"
                for key in sorted(set(field_doc.model_extra or {}) - self._KNOWN_FIELD_KEYS)
            )

        if not unknown:
            return
        if self._strict:
            raise SchemaSyntaxError(f"Unknown keys: {unknown}.", source)
        logger.warning("Ignoring unknown schema keys in %s: %s", source or "<dict>", unknown)

    def _build_schema(self, document: SchemaDocument, source: str | None) -> Schema:
        problems: list[SchemaProblem] = []

        verbs = self._check_names(document.permissions, "verb", problems)
        if not document.permissions:
            problems.append(
                SchemaProblem("<schema>", "no_verbs", "At least one permission verb must be declared")
            )
        domains = self._check_names(document.domains, "domain", problems)
        declared_verbs = frozenset(verbs)

        resource_names: list[str] = []
        for resource_doc in document.resources:
            name = resource_doc.name
            if not is_valid_identifier(name):
                problems.append(
                    SchemaProblem(name, "invalid_identifier", f"Resource name {name!r} is not a valid identifier")
                )
            elif name in RESERVED_RESOURCE_NAMES:
                problems.append(
                    SchemaProblem(name, "reserved_identifier", f"Resource name {name!r} is reserved")
                )
            if name in resource_names:
                problems.append(
                    SchemaProblem(name, "duplicate_resource", f"Resource {name!r} is declared more than once")
                )
            resource_names.append(name)

            # The global domain never needs declaring.
            if resource_doc.domain not in (None, GLOBAL_DOMAIN, *domains):
                problems.append(
                    SchemaProblem(
                        name,
                        "undeclared_domain",
                        f"Domain {resource_doc.domain!r} is not declared",
                    )
                )
            self._check_row(name, resource_doc.permissions, declared_verbs, problems)

        # Nested fields first, then detached ones, each in document order.
        fields_by_resource: dict[str, list[FieldDocument]] = {
            r.name: list(r.field_entries) for r in document.resources
        }
        for detached in document.field_entries:
            if detached.resource not in fields_by_resource:
                problems.append(
                    SchemaProblem(
                        f"{detached.resource}{FIELD_SEPARATOR}{detached.name}",
                        "unknown_resource",
                        f"Field references unknown resource {detached.resource!r}",
                    )
                )
                continue
            fields_by_resource[detached.resource].append(detached)

        resources: list[ResourceDefinition] = []
        for resource_doc in document.resources:
            seen_fields: set[str] = set()
            field_defs: list[FieldDefinition] = []
            for field_doc in fields_by_resource[resource_doc.name]:
                identifier = f"{resource_doc.name}{FIELD_SEPARATOR}{field_doc.name}"
                if not is_valid_identifier(field_doc.name):
                    problems.append(
                        SchemaProblem(
                            identifier,
                            "invalid_identifier",
                            f"Field name {field_doc.name!r} is not a valid identifier",
                        )
                    )
                if field_doc.name in seen_fields:
                    problems.append(
                        SchemaProblem(identifier, "duplicate_field", f"Field {identifier!r} is declared more than once")
                    )
                seen_fields.add(field_doc.name)
                self._check_row(identifier, field_doc.permissions, declared_verbs, problems)
                field_defs.append(
                    FieldDefinition(
                        resource=resource_doc.name,
                        name=field_doc.name,
                        permissions=_freeze_row(field_doc.permissions),
                        description=field_doc.description,
                    )
                )

            resources.append(
                ResourceDefinition(
                    name=resource_doc.name,
                    permissions=_freeze_row(resource_doc.permissions),
                    fields=tuple(field_defs),
                    domain=resource_doc.domain,
                    description=resource_doc.description,
                )
            )

        if problems:
            raise SchemaSemanticError(problems, source)

        return Schema(
            verbs=tuple(verbs),
            resources=tuple(resources),
            domains=tuple(domains),
            name=document.name,
        )

    @staticmethod
    def _check_names(
        names: list[str],
        kind: str,
        problems: list[SchemaProblem],
    ) -> list[str]:
        checked: list[str] = []
        for name in names:
            if not is_valid_identifier(name):
                problems.append(
                    SchemaProblem(name, "invalid_identifier", f"{kind.capitalize()} {name!r} is not a valid identifier")
                )
            if name in checked:
                problems.append(
                    SchemaProblem(name, f"duplicate_{kind}", f"{kind.capitalize()} {name!r} is declared more than once")
                )
                continue
            checked.append(name)
        return checked

    @staticmethod
    def _check_row(
        entity: str,
        row: dict[str, bool] | None,
        declared_verbs: frozenset[str],
        problems: list[SchemaProblem],
    ) -> None:
        if row is None:
            return
        for verb in row:
            if verb not in declared_verbs:
                problems.append(
                    SchemaProblem(entity, "undeclared_verb", f"Permission row references undeclared verb {verb!r}")
                )


def _freeze_row(row: dict[str, bool] | None) -> MappingProxyType[str, bool] | None:
    if row is None:
        return None
    return MappingProxyType(dict(row))
