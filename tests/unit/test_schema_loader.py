"""Unit tests for schema/loader.py — SchemaLoader."""
from __future__ import annotations

from pathlib import Path

import pytest

from aumos_access_compiler.errors import SchemaSemanticError, SchemaSyntaxError
from aumos_access_compiler.schema.loader import SchemaLoader
from aumos_access_compiler.schema.model import DEFAULT_VERBS, Schema


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_ROW = "{Create: false, Delete: false, List: true, Read: true, Update: true}"

PROTOTYPE_YAML = f"""\
version: "1"
name: permissions
permissions: [Create, Delete, List, Read, Update]
resources:
  - name: Prototype1
    permissions: {_ROW}
    fields:
      - name: id
        permissions: {_ROW}
      - name: protocol
        permissions: {_ROW}
"""

DOMAIN_YAML = """\
permissions: [Read, Update]
domains: [global, tenant]
resources:
  - name: Tenant
    domain: global
    permissions: {Read: true, Update: false}
  - name: Project
    domain: tenant
    permissions: {Read: true, Update: true}
fields:
  - resource: Project
    name: owner
    permissions: {Read: true, Update: false}
"""


@pytest.fixture()
def loader() -> SchemaLoader:
    return SchemaLoader()


@pytest.fixture()
def strict_loader() -> SchemaLoader:
    return SchemaLoader(strict=True)


# ---------------------------------------------------------------------------
# Successful loads
# ---------------------------------------------------------------------------


class TestSchemaLoaderYaml:
    def test_returns_schema(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string(PROTOTYPE_YAML)
        assert isinstance(schema, Schema)

    def test_verbs_keep_declaration_order(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string(PROTOTYPE_YAML)
        assert schema.verbs == ("Create", "Delete", "List", "Read", "Update")

    def test_fields_are_namespaced(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string(PROTOTYPE_YAML)
        assert schema.entity_identifiers() == [
            "Prototype1",
            "Prototype1.id",
            "Prototype1.protocol",
        ]

    def test_rows_are_read_only(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string(PROTOTYPE_YAML)
        row = schema.resources[0].permissions
        assert row is not None
        with pytest.raises(TypeError):
            row["Create"] = True  # type: ignore[index]

    def test_default_verbs_used_when_omitted(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_dict({"resources": []})
        assert schema.verbs == DEFAULT_VERBS

    def test_numeric_version_accepted(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string("version: 1\nresources: []\n")
        assert schema.resources == ()

    def test_empty_document_is_empty_schema(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string("")
        assert schema.resources == ()

    def test_domains_and_detached_fields(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_yaml_string(DOMAIN_YAML)
        assert schema.domains == ("global", "tenant")
        project = schema.get_resource("Project")
        assert project.domain == "tenant"
        assert project.field_identifiers == ["Project.owner"]

    def test_global_domain_needs_no_declaration(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_dict(
            {
                "permissions": ["Read"],
                "resources": [{"name": "Tenant", "domain": "global", "permissions": {"Read": True}}],
            }
        )
        assert schema.domains == ()
        assert schema.resources[0].domain == "global"

    def test_missing_verb_is_not_a_loader_error(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_dict(
            {
                "permissions": ["Read", "Update"],
                "resources": [{"name": "Doc", "permissions": {"Read": True}}],
            }
        )
        assert dict(schema.resources[0].permissions or {}) == {"Read": True}

    def test_field_without_row_loads_as_none(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_dict(
            {
                "permissions": ["Read"],
                "resources": [
                    {"name": "Doc", "permissions": {"Read": True}, "fields": [{"name": "body"}]}
                ],
            }
        )
        assert schema.resources[0].fields[0].permissions is None


class TestSchemaLoaderFile:
    def test_load_file(self, loader: SchemaLoader, tmp_path: Path) -> None:
        path = tmp_path / "permissions.yaml"
        path.write_text(PROTOTYPE_YAML, encoding="utf-8")
        schema = loader.load(path)
        assert len(schema.resources) == 1

    def test_missing_file_raises(self, loader: SchemaLoader, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            loader.load(tmp_path / "nope.yaml")

    def test_source_in_error_message(self, loader: SchemaLoader, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("resources: [", encoding="utf-8")
        with pytest.raises(SchemaSyntaxError) as exc_info:
            loader.load(path)
        assert exc_info.value.source == str(path)
        assert str(path) in str(exc_info.value)


# ---------------------------------------------------------------------------
# Syntax errors
# ---------------------------------------------------------------------------


class TestSchemaSyntaxErrors:
    def test_malformed_yaml(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="parse"):
            loader.load_from_yaml_string("resources: [\n  - name: x")

    def test_non_mapping_document(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="mapping"):
            loader.load_from_yaml_string("- just\n- a list\n")

    def test_non_boolean_cell(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="resources"):
            loader.load_from_dict(
                {
                    "permissions": ["Read"],
                    "resources": [{"name": "Doc", "permissions": {"Read": "yes"}}],
                }
            )

    def test_resources_must_be_a_list(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError):
            loader.load_from_dict({"resources": {"name": "Doc"}})

    def test_resource_requires_name(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="name"):
            loader.load_from_dict({"resources": [{"permissions": {}}]})

    def test_unsupported_version(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="version"):
            loader.load_from_dict({"version": "99", "resources": []})

    def test_syntax_error_is_value_error(self) -> None:
        assert issubclass(SchemaSyntaxError, ValueError)


class TestSchemaLoaderStrict:
    def test_strict_rejects_unknown_top_key(self, strict_loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="colour"):
            strict_loader.load_from_dict({"resources": [], "colour": "blue"})

    def test_strict_rejects_unknown_field_key(self, strict_loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSyntaxError, match="Doc.fields.body.secret"):
            strict_loader.load_from_dict(
                {
                    "permissions": ["Read"],
                    "resources": [
                        {
                            "name": "Doc",
                            "permissions": {"Read": True},
                            "fields": [{"name": "body", "secret": 1, "permissions": {"Read": True}}],
                        }
                    ],
                }
            )

    def test_loose_mode_ignores_unknown_keys(self, loader: SchemaLoader) -> None:
        schema = loader.load_from_dict({"resources": [], "colour": "blue"})
        assert schema.resources == ()


# ---------------------------------------------------------------------------
# Semantic errors
# ---------------------------------------------------------------------------


class TestSchemaSemanticErrors:
    def _defects(self, loader: SchemaLoader, raw: dict[str, object]) -> list[str]:
        with pytest.raises(SchemaSemanticError) as exc_info:
            loader.load_from_dict(raw)
        return [p.defect for p in exc_info.value.problems]

    def test_duplicate_resource(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "resources": [
                    {"name": "Doc", "permissions": {"Read": True}},
                    {"name": "Doc", "permissions": {"Read": False}},
                ],
            },
        )
        assert defects == ["duplicate_resource"]

    def test_duplicate_field(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSemanticError) as exc_info:
            loader.load_from_dict(
                {
                    "permissions": ["Read"],
                    "resources": [
                        {
                            "name": "Doc",
                            "permissions": {"Read": True},
                            "fields": [
                                {"name": "body", "permissions": {"Read": True}},
                                {"name": "body", "permissions": {"Read": False}},
                            ],
                        }
                    ],
                }
            )
        problem = exc_info.value.problems[0]
        assert problem.defect == "duplicate_field"
        assert problem.entity == "Doc.body"

    def test_detached_field_duplicates_nested_field(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "resources": [
                    {
                        "name": "Doc",
                        "permissions": {"Read": True},
                        "fields": [{"name": "body", "permissions": {"Read": True}}],
                    }
                ],
                "fields": [{"resource": "Doc", "name": "body", "permissions": {"Read": True}}],
            },
        )
        assert defects == ["duplicate_field"]

    def test_field_referencing_unknown_resource(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "resources": [],
                "fields": [{"resource": "Ghost", "name": "id", "permissions": {"Read": True}}],
            },
        )
        assert defects == ["unknown_resource"]

    def test_undeclared_verb_in_row(self, loader: SchemaLoader) -> None:
        with pytest.raises(SchemaSemanticError, match="Approve") as exc_info:
            loader.load_from_dict(
                {
                    "permissions": ["Read"],
                    "resources": [{"name": "Doc", "permissions": {"Read": True, "Approve": True}}],
                }
            )
        assert exc_info.value.problems[0].defect == "undeclared_verb"

    def test_undeclared_domain(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "domains": ["global"],
                "resources": [{"name": "Doc", "domain": "tenant", "permissions": {"Read": True}}],
            },
        )
        assert defects == ["undeclared_domain"]

    def test_dotted_field_name_rejected(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "resources": [
                    {
                        "name": "Doc",
                        "permissions": {"Read": True},
                        "fields": [{"name": "a.b", "permissions": {"Read": True}}],
                    }
                ],
            },
        )
        assert defects == ["invalid_identifier"]

    def test_prefixed_verb_rejected(self, loader: SchemaLoader) -> None:
        defects = self._defects(loader, {"permissions": ["perm:Read"], "resources": []})
        assert defects == ["invalid_identifier"]

    def test_reserved_resource_name(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {"permissions": ["Read"], "resources": [{"name": "Resources", "permissions": {"Read": True}}]},
        )
        assert defects == ["reserved_identifier"]

    @pytest.mark.parametrize("name", ["requiresPermission", "PermissionResources", "PermissionMappings"])
    def test_reserved_typescript_declaration_names(self, loader: SchemaLoader, name: str) -> None:
        defects = self._defects(
            loader,
            {"permissions": ["Read"], "resources": [{"name": name, "permissions": {"Read": True}}]},
        )
        assert defects == ["reserved_identifier"]

    def test_duplicate_verb(self, loader: SchemaLoader) -> None:
        defects = self._defects(loader, {"permissions": ["Read", "Read"], "resources": []})
        assert defects == ["duplicate_verb"]

    def test_empty_verb_list(self, loader: SchemaLoader) -> None:
        defects = self._defects(loader, {"permissions": [], "resources": []})
        assert defects == ["no_verbs"]

    def test_all_problems_are_collected(self, loader: SchemaLoader) -> None:
        defects = self._defects(
            loader,
            {
                "permissions": ["Read"],
                "resources": [
                    {"name": "Doc", "permissions": {"Read": True, "Write": True}},
                    {"name": "Doc", "permissions": {"Read": True}},
                ],
                "fields": [{"resource": "Ghost", "name": "id", "permissions": {"Read": True}}],
            },
        )
        assert defects == ["undeclared_verb", "duplicate_resource", "unknown_resource"]
