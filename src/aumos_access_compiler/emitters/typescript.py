"""TypeScript emitters.

``typescript`` renders string enums for verbs, resources and each resource's
fields, the static ``Mappings`` table and ``requiresPermission``.  The
``AllResources`` union makes calls with an unknown entity a compile error.

``typescript-enums`` renders the enums alone, for clients that only need the
identifiers.
"""
from __future__ import annotations

import re
from string import Template

from aumos_access_compiler.emitters.base import (
    GENERATED_NOTICE,
    EmissionModel,
    Emitter,
    find_name_clashes,
    scan_constant_blocks,
)
from aumos_access_compiler.emitters.registry import default_registry
from aumos_access_compiler.matrix.validator import Violation

_MODULE_TEMPLATE = Template(
    """\
// $notice
$enums
type AllResources = $all_resources;
type PermissionResources = Record<Permissions, boolean>;
type PermissionMappings = Record<AllResources, PermissionResources>;

const Mappings: PermissionMappings = {
$mappings};

export function requiresPermission(resource: AllResources, permission: Permissions): boolean {
  return Mappings[resource][permission];
}
"""
)

_ENUMS_TEMPLATE = Template(
    """\
// $notice
$enums"""
)

_ENUM_OPEN = re.compile(r"^export enum (?P<block>\w+) \{$")
_ENUM_MEMBER = re.compile(r"^  (?P<member>\w+) = '(?P<value>[^']*)',$")

# Names a field enum cannot take: the template's own declarations, the
# language's reserved words and its predefined type names.
_RESERVED_ENUM_NAMES = frozenset(
    {
        "AllResources", "Mappings", "PermissionMappings", "PermissionResources",
        "Permissions", "Record", "Resources", "requiresPermission",
        "await", "break", "case", "catch", "class", "const", "continue",
        "debugger", "default", "delete", "do", "else", "enum", "export",
        "extends", "false", "finally", "for", "function", "if", "implements",
        "import", "in", "instanceof", "interface", "let", "new", "null",
        "package", "private", "protected", "public", "return", "static",
        "super", "switch", "this", "throw", "true", "try", "typeof", "var",
        "void", "while", "with", "yield",
        "any", "bigint", "boolean", "never", "number", "object", "string",
        "symbol", "undefined", "unknown",
    }
)


def _enum(name: str, members: list[tuple[str, str]]) -> str:
    lines = [f"export enum {name} {{"]
    lines.extend(f"  {member} = '{value}'," for member, value in members)
    lines.append("}")
    return "\n".join(lines) + "\n"


def _enums(model: EmissionModel) -> str:
    blocks = [
        _enum("Permissions", [(verb, verb) for verb in model.verbs]),
        _enum("Resources", [(r.identifier, r.identifier) for r in model.resources]),
    ]
    for block in model.field_blocks:
        blocks.append(
            _enum(block.resource, [(f.field or "", f.identifier) for f in block.fields])
        )
    return "\n".join(blocks)


def _reference(identifier: str, is_field: bool) -> str:
    return identifier if is_field else f"Resources.{identifier}"


def _check_enum_names(target: str, model: EmissionModel) -> list[Violation]:
    return find_name_clashes(
        target,
        ((block.resource, block.resource) for block in model.field_blocks),
        _RESERVED_ENUM_NAMES,
    )


@default_registry.register("typescript")
class TypeScriptEmitter(Emitter):
    """Emits a TypeScript module with enums, table and lookup function."""

    target = "typescript"
    file_extension = ".ts"

    _ROW_OPEN = re.compile(r"^  \[(?P<ref>\w+\.\w+)\]: \{$")
    _CELL = re.compile(r"^    \[(?P<ref>\w+\.\w+)\]: (?P<value>true|false),$")
    _TRUE = "true"

    def check_names(self, model: EmissionModel) -> list[Violation]:
        return _check_enum_names(self.target, model)

    def render(self, model: EmissionModel) -> str:
        union = ["Resources"] + [block.resource for block in model.field_blocks]
        mappings: list[str] = []
        for row in model.rows:
            mappings.append(f"  [{_reference(row.identifier, row.is_field)}]: {{\n")
            for verb, value in row.cells:
                mappings.append(f"    [Permissions.{verb}]: {'true' if value else 'false'},\n")
            mappings.append("  },\n")

        return _MODULE_TEMPLATE.substitute(
            notice=GENERATED_NOTICE,
            enums=_enums(model),
            all_resources=" | ".join(union),
            mappings="".join(mappings),
        )

    def decode_constants(self, text: str) -> dict[str, str]:
        return scan_constant_blocks(text, _ENUM_OPEN, _ENUM_MEMBER)


@default_registry.register("typescript-enums")
class TypeScriptEnumsEmitter(Emitter):
    """Emits only the TypeScript identifier enums."""

    target = "typescript-enums"
    file_extension = ".enums.ts"
    emits_table = False

    def check_names(self, model: EmissionModel) -> list[Violation]:
        return _check_enum_names(self.target, model)

    def render(self, model: EmissionModel) -> str:
        return _ENUMS_TEMPLATE.substitute(notice=GENERATED_NOTICE, enums=_enums(model))

    def decode_constants(self, text: str) -> dict[str, str]:
        return scan_constant_blocks(text, _ENUM_OPEN, _ENUM_MEMBER)
