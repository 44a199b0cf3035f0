"""Unit tests for matrix/builder.py and matrix/table.py."""
from __future__ import annotations

import pytest

from aumos_access_compiler.errors import IncompleteRowError
from aumos_access_compiler.matrix.builder import MatrixBuilder
from aumos_access_compiler.matrix.table import MatrixEntry, PermissionMatrix
from aumos_access_compiler.schema.model import (
    FieldDefinition,
    ResourceDefinition,
    Schema,
)

VERBS = ("Create", "Delete", "List", "Read", "Update")

_ROW = {"Create": False, "Delete": False, "List": True, "Read": True, "Update": True}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def builder() -> MatrixBuilder:
    return MatrixBuilder()


@pytest.fixture()
def prototype_schema() -> Schema:
    resource = ResourceDefinition(
        name="Prototype1",
        permissions=dict(_ROW),
        fields=(
            FieldDefinition("Prototype1", "id", dict(_ROW)),
            FieldDefinition("Prototype1", "protocol", dict(_ROW)),
        ),
    )
    return Schema(verbs=VERBS, resources=(resource,))


@pytest.fixture()
def prototype_matrix(builder: MatrixBuilder, prototype_schema: Schema) -> PermissionMatrix:
    return builder.build(prototype_schema)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TestMatrixBuilder:
    def test_one_entry_per_resource_and_field(self, prototype_matrix: PermissionMatrix) -> None:
        assert prototype_matrix.identifiers() == [
            "Prototype1",
            "Prototype1.id",
            "Prototype1.protocol",
        ]

    def test_entries_carry_every_declared_verb(self, prototype_matrix: PermissionMatrix) -> None:
        for entry in prototype_matrix:
            assert entry.verbs == VERBS

    def test_prototype_lookups(self, prototype_matrix: PermissionMatrix) -> None:
        assert prototype_matrix.requires_permission("Prototype1", "List") is True
        assert prototype_matrix.requires_permission("Prototype1", "Create") is False
        assert prototype_matrix.requires_permission("Prototype1.protocol", "Update") is True

    def test_cells_follow_declared_order_not_row_order(self, builder: MatrixBuilder) -> None:
        schema = Schema(
            verbs=("Read", "Update"),
            resources=(ResourceDefinition("Doc", {"Update": False, "Read": True}),),
        )
        entry = builder.build(schema).get("Doc")
        assert entry.cells == (("Read", True), ("Update", False))

    def test_field_rows_are_not_derived_from_resource(self, builder: MatrixBuilder) -> None:
        schema = Schema(
            verbs=("Read", "Update"),
            resources=(
                ResourceDefinition(
                    "Doc",
                    {"Read": True, "Update": True},
                    fields=(FieldDefinition("Doc", "secret", {"Read": False, "Update": False}),),
                ),
            ),
        )
        matrix = builder.build(schema)
        assert matrix.get("Doc").as_dict() == {"Read": True, "Update": True}
        assert matrix.get("Doc.secret").as_dict() == {"Read": False, "Update": False}

    def test_missing_field_verb_names_entity_and_verb(self, builder: MatrixBuilder) -> None:
        partial = {k: v for k, v in _ROW.items() if k != "Update"}
        schema = Schema(
            verbs=VERBS,
            resources=(
                ResourceDefinition(
                    "Prototype1",
                    dict(_ROW),
                    fields=(
                        FieldDefinition("Prototype1", "id", dict(_ROW)),
                        FieldDefinition("Prototype1", "protocol", partial),
                    ),
                ),
            ),
        )
        with pytest.raises(IncompleteRowError) as exc_info:
            builder.build(schema)
        assert exc_info.value.entity == "Prototype1.protocol"
        assert exc_info.value.missing_verbs == ("Update",)
        assert "Prototype1.protocol" in str(exc_info.value)

    def test_field_is_not_filled_from_resource(self, builder: MatrixBuilder) -> None:
        schema = Schema(
            verbs=("Read",),
            resources=(
                ResourceDefinition("Doc", {"Read": True}, fields=(FieldDefinition("Doc", "body"),)),
            ),
        )
        with pytest.raises(IncompleteRowError) as exc_info:
            builder.build(schema)
        assert exc_info.value.entity == "Doc.body"
        assert exc_info.value.missing_verbs == ("Read",)

    def test_resource_without_row(self, builder: MatrixBuilder) -> None:
        schema = Schema(verbs=("Read", "Update"), resources=(ResourceDefinition("Doc"),))
        with pytest.raises(IncompleteRowError) as exc_info:
            builder.build(schema)
        assert exc_info.value.missing_verbs == ("Read", "Update")

    def test_domain_is_carried_to_fields(self, builder: MatrixBuilder) -> None:
        schema = Schema(
            verbs=("Read",),
            domains=("tenant",),
            resources=(
                ResourceDefinition(
                    "Project",
                    {"Read": True},
                    fields=(FieldDefinition("Project", "owner", {"Read": False}),),
                    domain="tenant",
                ),
            ),
        )
        matrix = builder.build(schema)
        assert matrix.domain_of("Project") == "tenant"
        assert matrix.domain_of("Project.owner") == "tenant"

    def test_empty_schema_builds_empty_matrix(self, builder: MatrixBuilder) -> None:
        matrix = builder.build(Schema(verbs=("Read",)))
        assert len(matrix) == 0
        assert matrix.verbs == ("Read",)


# ---------------------------------------------------------------------------
# PermissionMatrix queries
# ---------------------------------------------------------------------------


class TestPermissionMatrix:
    def test_contains(self, prototype_matrix: PermissionMatrix) -> None:
        assert "Prototype1.id" in prototype_matrix
        assert "Prototype1.missing" not in prototype_matrix

    def test_unknown_entity_raises_key_error(self, prototype_matrix: PermissionMatrix) -> None:
        with pytest.raises(KeyError):
            prototype_matrix.requires_permission("Ghost", "Read")

    def test_unknown_verb_raises_key_error(self, prototype_matrix: PermissionMatrix) -> None:
        with pytest.raises(KeyError):
            prototype_matrix.requires_permission("Prototype1", "Approve")

    def test_granted(self, prototype_matrix: PermissionMatrix) -> None:
        assert prototype_matrix.granted("Read") == [
            "Prototype1",
            "Prototype1.id",
            "Prototype1.protocol",
        ]
        assert prototype_matrix.granted("Delete") == []

    def test_resources_and_fields(self, prototype_matrix: PermissionMatrix) -> None:
        assert [e.identifier for e in prototype_matrix.resources()] == ["Prototype1"]
        assert [e.field for e in prototype_matrix.fields_of("Prototype1")] == ["id", "protocol"]

    def test_as_dict(self, prototype_matrix: PermissionMatrix) -> None:
        table = prototype_matrix.as_dict()
        assert set(table) == {"Prototype1", "Prototype1.id", "Prototype1.protocol"}
        assert table["Prototype1.id"] == _ROW

    def test_entry_is_field(self) -> None:
        entry = MatrixEntry("Doc.body", "Doc", "body", (("Read", True),))
        assert entry.is_field
        assert entry.allows("Read") is True
