"""Shared emitter framework.

Every target renders the same canonical sequence, an :class:`EmissionModel`
built once from the validated matrix.  Targets differ only in the text they
wrap around it.  Rendering iterates declaration order and nothing else, so
two runs over the same matrix produce byte-identical text.

Each target also checks that the names it would declare are legal and
distinct in its language before anything is rendered.

Each emitter can also read its own output back into a truth table with
:meth:`Emitter.decode`, which is what cross-target equivalence checks use.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Collection, Iterable

from aumos_access_compiler.matrix.table import MatrixEntry, PermissionMatrix
from aumos_access_compiler.errors import EmitterOptionError
from aumos_access_compiler.matrix.validator import (
    MatrixValidator,
    ValidationReport,
    Violation,
    ViolationKind,
)
from aumos_access_compiler.schema.model import Schema

logger = logging.getLogger(__name__)

GENERATED_NOTICE = "This file is auto-generated. Do not edit manually."


@dataclass(frozen=True)
class FieldBlock:
    """Field constants owned by one resource."""

    resource: str
    fields: tuple[MatrixEntry, ...]


@dataclass(frozen=True)
class EmissionModel:
    """Canonical, ordered view of a validated matrix shared by all emitters."""

    schema_name: str
    verbs: tuple[str, ...]
    resources: tuple[MatrixEntry, ...]
    field_blocks: tuple[FieldBlock, ...]
    rows: tuple[MatrixEntry, ...]

    @classmethod
    def from_matrix(cls, matrix: PermissionMatrix, schema_name: str) -> EmissionModel:
        resources = tuple(matrix.resources())
        blocks = tuple(
            FieldBlock(resource.identifier, tuple(matrix.fields_of(resource.identifier)))
            for resource in resources
        )
        return cls(
            schema_name=schema_name,
            verbs=tuple(matrix.verbs),
            resources=resources,
            field_blocks=tuple(block for block in blocks if block.fields),
            rows=tuple(matrix.entries),
        )


class Emitter(ABC):
    """Base class for target-language emitters.

    Subclasses set :attr:`target` and :attr:`file_extension`, implement
    :meth:`render`, and describe their table syntax with the ``_ROW_OPEN``,
    ``_CELL`` and ``_TRUE`` class attributes used by :meth:`decode`.

    Parameters
    ----------
    options:
        Target-specific options.  Unknown options are rejected.
    """

    target: ClassVar[str] = ""
    file_extension: ClassVar[str] = ""
    emits_table: ClassVar[bool] = True
    option_names: ClassVar[frozenset[str]] = frozenset()

    _ROW_OPEN: ClassVar[re.Pattern[str]]
    _CELL: ClassVar[re.Pattern[str]]
    _TRUE: ClassVar[str] = "true"

    def __init__(self, **options: object) -> None:
        unknown = set(options) - self.option_names
        if unknown:
            raise EmitterOptionError(self.target, f"unknown option(s) {sorted(unknown)}")
        self.options: dict[str, object] = dict(options)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def emit(self, matrix: PermissionMatrix, schema: Schema) -> str:
        """Render *matrix* as target source text.

        Raises
        ------
        ValidationFailure
            If the matrix does not validate against *schema*, or if a name
            cannot be declared in the target language.  Nothing is rendered
            in either case.
        """
        model = EmissionModel.from_matrix(matrix, schema.name)
        report = MatrixValidator().validate(matrix, schema)
        report.merge(ValidationReport(tuple(self.check_names(model)))).raise_if_failed()
        text = self.render(model)
        logger.debug("Rendered %s output: %d bytes", self.target, len(text))
        return text

    def check_names(self, model: EmissionModel) -> list[Violation]:
        """Return a violation for every name this target cannot declare."""
        return []

    @abstractmethod
    def render(self, model: EmissionModel) -> str:
        """Render the canonical model.  Must be a pure function of *model*."""

    def default_filename(self, schema_name: str) -> str:
        return f"{schema_name}{self.file_extension}"

    def decode(self, text: str) -> dict[str, dict[str, bool]]:
        """Read the emitted table back as ``{identifier: {verb: bool}}``."""
        if not self.emits_table:
            return {}
        constants = self.decode_constants(text)
        table: dict[str, dict[str, bool]] = {}
        current: dict[str, bool] | None = None
        for line in text.splitlines():
            row_match = self._ROW_OPEN.match(line)
            if row_match:
                current = table.setdefault(constants[row_match.group("ref")], {})
                continue
            cell_match = self._CELL.match(line)
            if cell_match and current is not None:
                verb = constants[cell_match.group("ref")]
                current[verb] = cell_match.group("value") == self._TRUE
        return table

    @abstractmethod
    def decode_constants(self, text: str) -> dict[str, str]:
        """Map every constant reference in *text* to its string value."""


# ---------------------------------------------------------------------------
# Helpers shared by the enum-style targets
# ---------------------------------------------------------------------------


def scan_constant_blocks(
    text: str,
    block_open: re.Pattern[str],
    member: re.Pattern[str],
) -> dict[str, str]:
    """Collect ``Block.member -> value`` from enum or class style blocks."""
    constants: dict[str, str] = {}
    block: str | None = None
    for line in text.splitlines():
        open_match = block_open.match(line)
        if open_match:
            block = open_match.group("block")
            continue
        member_match = member.match(line)
        if member_match and block is not None:
            constants[f"{block}.{member_match.group('member')}"] = member_match.group("value")
        elif not line.startswith(" "):
            block = None
    return constants


def find_name_clashes(
    target: str,
    names: Iterable[tuple[str, str]],
    reserved: Collection[str] = (),
) -> list[Violation]:
    """Report ``(identifier, emitted_name)`` pairs that share one namespace.

    A name in *reserved* cannot be declared in the target at all.
    """
    owners: dict[str, str] = {}
    violations: list[Violation] = []
    for identifier, emitted in names:
        if emitted in reserved:
            violations.append(
                Violation(
                    identifier,
                    ViolationKind.RESERVED_NAME,
                    f"Target {target!r} cannot declare {emitted!r}: the name is reserved",
                )
            )
        elif emitted in owners:
            violations.append(
                Violation(
                    identifier,
                    ViolationKind.NAME_COLLISION,
                    f"Target {target!r} emits {emitted!r}, already emitted for {owners[emitted]!r}",
                )
            )
        else:
            owners[emitted] = identifier
    return violations
