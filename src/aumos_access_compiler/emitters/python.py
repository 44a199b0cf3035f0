"""Python emitter.

Renders constant holder classes for verbs, resources and each resource's
fields, a ``MAPPINGS`` dict and ``requires_permission``.  Constants are plain
strings so callers may pass either the constant or its literal value.
"""
from __future__ import annotations

import keyword
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
    '''\
# $notice
"""Permission table for the ``$schema_name`` schema."""
from __future__ import annotations

__all__ = [
$exports]


$classes

MAPPINGS: dict[str, dict[str, bool]] = {
$mappings}


def requires_permission(resource: str, permission: str) -> bool:
    """Return whether *permission* is required for *resource*.

    Raises
    ------
    KeyError
        If the resource or the permission has no entry in the table.
    """
    try:
        return MAPPINGS[resource][permission]
    except KeyError:
        raise KeyError(
            f"No permission entry for ({resource!r}, {permission!r})"
        ) from None
'''
)

_CLASS_OPEN = re.compile(r"^class (?P<block>\w+):$")
_CLASS_MEMBER = re.compile(r'^    (?P<member>\w+) = "(?P<value>[^"]*)"$')

# Module-level names the template declares or relies on.
_MODULE_NAMES = frozenset(
    {"Permissions", "Resources", "MAPPINGS", "requires_permission", "annotations", "KeyError"}
)
_CLASS_NAMES = frozenset({"__slots__"})


def member_name(name: str) -> str:
    """Return *name*, with a trailing underscore if it is a Python keyword."""
    if keyword.iskeyword(name) or keyword.issoftkeyword(name):
        return f"{name}_"
    return name


def _constant_class(name: str, members: list[tuple[str, str]]) -> str:
    lines = [f"class {name}:", "    __slots__ = ()"]
    lines.extend(f'    {member_name(member)} = "{value}"' for member, value in members)
    return "\n".join(lines)


@default_registry.register("python")
class PythonEmitter(Emitter):
    """Emits an importable Python module."""

    target = "python"
    file_extension = ".py"

    _ROW_OPEN = re.compile(r"^    (?P<ref>\w+\.\w+): \{$")
    _CELL = re.compile(r"^        (?P<ref>\w+\.\w+): (?P<value>True|False),$")
    _TRUE = "True"

    def check_names(self, model: EmissionModel) -> list[Violation]:
        violations = find_name_clashes(
            self.target,
            ((block.resource, member_name(block.resource)) for block in model.field_blocks),
            _MODULE_NAMES,
        )
        violations.extend(
            find_name_clashes(self.target, ((verb, member_name(verb)) for verb in model.verbs), _CLASS_NAMES)
        )
        violations.extend(
            find_name_clashes(
                self.target,
                ((r.identifier, member_name(r.identifier)) for r in model.resources),
                _CLASS_NAMES,
            )
        )
        for block in model.field_blocks:
            violations.extend(
                find_name_clashes(
                    self.target,
                    ((f.identifier, member_name(f.field or "")) for f in block.fields),
                    _CLASS_NAMES,
                )
            )
        return violations

    def render(self, model: EmissionModel) -> str:
        classes = [
            _constant_class("Permissions", [(verb, verb) for verb in model.verbs]),
            _constant_class("Resources", [(r.identifier, r.identifier) for r in model.resources]),
        ]
        classes.extend(
            _constant_class(
                member_name(block.resource),
                [(f.field or "", f.identifier) for f in block.fields],
            )
            for block in model.field_blocks
        )
        exports = ["Permissions", "Resources"]
        exports.extend(member_name(block.resource) for block in model.field_blocks)
        exports.extend(["MAPPINGS", "requires_permission"])

        mappings: list[str] = []
        for row in model.rows:
            if row.is_field:
                reference = f"{member_name(row.resource)}.{member_name(row.field or '')}"
            else:
                reference = f"Resources.{member_name(row.identifier)}"
            mappings.append(f"    {reference}: {{\n")
            for verb, value in row.cells:
                mappings.append(f"        Permissions.{member_name(verb)}: {value!r},\n")
            mappings.append("    },\n")

        return _MODULE_TEMPLATE.substitute(
            notice=GENERATED_NOTICE,
            schema_name=model.schema_name,
            exports="".join(f'    "{name}",\n' for name in exports),
            classes="\n\n\n".join(classes) + "\n",
            mappings="".join(mappings),
        )

    def decode_constants(self, text: str) -> dict[str, str]:
        return scan_constant_blocks(text, _CLASS_OPEN, _CLASS_MEMBER)
