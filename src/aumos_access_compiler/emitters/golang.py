"""Go emitter.

Renders typed ``Permission`` and ``Resource`` string constants, the
``mappings`` table and ``RequiresPermission``, which returns an error for an
absent resource or permission.  Output is already gofmt-aligned.
"""
from __future__ import annotations

import re
from string import Template

from aumos_access_compiler.emitters.base import EmissionModel, Emitter, find_name_clashes
from aumos_access_compiler.emitters.registry import default_registry
from aumos_access_compiler.errors import EmitterOptionError
from aumos_access_compiler.matrix.validator import Violation

_DEFAULT_PACKAGE = "permissions"

_FILE_TEMPLATE = Template(
    """\
// Code generated by aumos-access-compiler. DO NOT EDIT.

// Package $package holds the permission table for the $schema_name schema.
package $package

import "fmt"

// Permission is a permission verb.
type Permission string

// Resource is a resource or resource field identifier.
type Resource string

$constants
var mappings = map[Resource]map[Permission]bool{
$mappings}

// RequiresPermission reports whether permission is required for resource.
func RequiresPermission(resource Resource, permission Permission) (bool, error) {
	perms, ok := mappings[resource]
	if !ok {
		return false, fmt.Errorf("unknown resource %q", resource)
	}

	required, ok := perms[permission]
	if !ok {
		return false, fmt.Errorf("unknown permission %q for resource %q", permission, resource)
	}

	return required, nil
}
"""
)

_CONSTANT = re.compile(r'^\t(?P<name>\w+)\s+(?:Permission|Resource) = "(?P<value>[^"]*)"$')
_PACKAGE_CLEAN = re.compile(r"[^a-z0-9]")
_PACKAGE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

GO_KEYWORDS: frozenset[str] = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer",
        "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
        "interface", "map", "package", "range", "return", "select", "struct",
        "switch", "type", "var",
    }
)

# Package-level names the template declares.
_FILE_NAMES = frozenset({"Permission", "Resource", "RequiresPermission", "mappings"})


def verb_constant(verb: str) -> str:
    return f"Permission{verb}"


def resource_constant(resource: str) -> str:
    return f"Resource{resource}"


def field_constant(resource: str, field_name: str) -> str:
    return f"Field{resource}_{field_name}"


def _const_block(type_name: str, members: list[tuple[str, str]], comment: str) -> str:
    width = max((len(name) for name, _ in members), default=0)
    lines = [f"// {comment}", "const ("]
    lines.extend(
        f'\t{name.ljust(width)} {type_name} = "{value}"' for name, value in members
    )
    lines.append(")")
    return "\n".join(lines) + "\n"


@default_registry.register("go")
class GoEmitter(Emitter):
    """Emits a Go source file.

    Options
    -------
    package:
        Go package name.  Defaults to the schema name, lower-cased.
    """

    target = "go"
    file_extension = ".go"
    option_names = frozenset({"package"})

    _ROW_OPEN = re.compile(r"^\t(?P<ref>\w+): \{$")
    _CELL = re.compile(r"^\t\t(?P<ref>\w+):\s+(?P<value>true|false),$")
    _TRUE = "true"

    def __init__(self, **options: object) -> None:
        super().__init__(**options)
        package = options.get("package")
        if package is not None and (
            not isinstance(package, str)
            or not _PACKAGE_NAME.match(package)
            or package in GO_KEYWORDS
            or package == "_"
        ):
            raise EmitterOptionError(self.target, f"package {package!r} is not a valid Go package name")

    def package_name(self, schema_name: str) -> str:
        configured = self.options.get("package")
        if configured:
            return str(configured)
        cleaned = _PACKAGE_CLEAN.sub("", schema_name.lower())
        if not cleaned or cleaned[0].isdigit() or cleaned in GO_KEYWORDS:
            return _DEFAULT_PACKAGE
        return cleaned

    def check_names(self, model: EmissionModel) -> list[Violation]:
        names = [(verb, verb_constant(verb)) for verb in model.verbs]
        names.extend((r.identifier, resource_constant(r.identifier)) for r in model.resources)
        for block in model.field_blocks:
            names.extend((f.identifier, field_constant(block.resource, f.field or "")) for f in block.fields)
        return find_name_clashes(self.target, names, _FILE_NAMES)

    def render(self, model: EmissionModel) -> str:
        blocks = [
            _const_block(
                "Permission",
                [(verb_constant(verb), verb) for verb in model.verbs],
                "Permission verbs.",
            ),
            _const_block(
                "Resource",
                [(resource_constant(r.identifier), r.identifier) for r in model.resources],
                "Resources.",
            ),
        ]
        for block in model.field_blocks:
            blocks.append(
                _const_block(
                    "Resource",
                    [(field_constant(block.resource, f.field or ""), f.identifier) for f in block.fields],
                    f"{block.resource} fields.",
                )
            )

        width = max((len(verb_constant(verb)) + 1 for verb in model.verbs), default=0)
        mappings: list[str] = []
        for row in model.rows:
            if row.is_field:
                reference = field_constant(row.resource, row.field or "")
            else:
                reference = resource_constant(row.identifier)
            mappings.append(f"\t{reference}: {{\n")
            for verb, value in row.cells:
                key = f"{verb_constant(verb)}:".ljust(width)
                mappings.append(f"\t\t{key} {'true' if value else 'false'},\n")
            mappings.append("\t},\n")

        return _FILE_TEMPLATE.substitute(
            package=self.package_name(model.schema_name),
            schema_name=model.schema_name,
            constants="\n".join(blocks),
            mappings="".join(mappings),
        )

    def decode_constants(self, text: str) -> dict[str, str]:
        constants: dict[str, str] = {}
        for line in text.splitlines():
            match = _CONSTANT.match(line)
            if match:
                constants[match.group("name")] = match.group("value")
        return constants
