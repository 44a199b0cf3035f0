"""Matrix validator: completeness, shape and uniqueness checks.

The validator never stops at the first defect.  It walks the whole matrix and
schema and returns a :class:`ValidationReport` listing every violation, so a
single compiler run surfaces every problem in the schema.

Checks
------
- completeness: every declared resource and field has exactly one row and
  every row belongs to a declared entity;
- shape: every row holds exactly the declared verbs, each with a boolean;
- uniqueness: one flat scan over matrix keys finds every duplicated key,
  including two fields of a resource sharing a local name and a resource
  named like another resource's ``resource.field`` key;
- cross-target: decoded emitter output must match the matrix cell by cell.

Example
-------
::

    report = MatrixValidator().validate(matrix, schema)
    report.raise_if_failed()
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping

from aumos_access_compiler.errors import ValidationFailure
from aumos_access_compiler.matrix.table import PermissionMatrix
from aumos_access_compiler.schema.model import Schema

logger = logging.getLogger(__name__)


class ViolationKind(str, Enum):
    """Kinds of defect the validator can report."""

    MISSING_ROW = "missing_row"
    UNKNOWN_ENTITY = "unknown_entity"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    MISSING_VERB = "missing_verb"
    UNDECLARED_VERB = "undeclared_verb"
    NON_BOOLEAN = "non_boolean"
    DUPLICATE_VERB = "duplicate_verb"
    VERB_SET_MISMATCH = "verb_set_mismatch"
    CROSS_TARGET_MISMATCH = "cross_target_mismatch"
    NAME_COLLISION = "name_collision"
    RESERVED_NAME = "reserved_name"


@dataclass(frozen=True)
class Violation:
    """A single defect found by the validator.

    Attributes
    ----------
    entity:
        Identifier of the offending entity (or ``<verbs>`` / a target name
        for defects that are not tied to one row).
    kind:
        The :class:`ViolationKind`.
    detail:
        Human-readable description.
    verb:
        The verb involved, when the defect concerns a single cell.
    """

    entity: str
    kind: ViolationKind
    detail: str
    verb: str | None = None

    def __str__(self) -> str:
        return f"{self.entity}: {self.detail} [{self.kind.value}]"


@dataclass(frozen=True)
class ValidationReport:
    """Ordered list of violations.  Empty means the matrix is sound."""

    violations: tuple[Violation, ...] = ()

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __bool__(self) -> bool:
        """Return True if the report is clean."""
        return not self.violations

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def by_kind(self, kind: ViolationKind) -> list[Violation]:
        return [v for v in self.violations if v.kind is kind]

    def for_entity(self, entity: str) -> list[Violation]:
        return [v for v in self.violations if v.entity == entity]

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        return ValidationReport(self.violations + other.violations)

    def raise_if_failed(self) -> None:
        """Raise :class:`ValidationFailure` if the report holds any violation."""
        if self.violations:
            raise ValidationFailure(self)


class MatrixValidator:
    """Checks a :class:`PermissionMatrix` against the schema it came from."""

    def validate(self, matrix: PermissionMatrix, schema: Schema) -> ValidationReport:
        """Run every check and return the accumulated report."""
        violations: list[Violation] = []
        violations.extend(self._check_verbs(matrix, schema))
        violations.extend(self._check_uniqueness(matrix))
        violations.extend(self._check_completeness(matrix, schema))
        violations.extend(self._check_shape(matrix, schema))

        report = ValidationReport(tuple(violations))
        if report.is_valid:
            logger.info("Permission matrix is valid (%d entries)", len(matrix))
        else:
            logger.info("Permission matrix has %d violation(s)", len(report))
        return report

    def check_cross_target(
        self,
        matrix: PermissionMatrix,
        decoded: Mapping[str, Mapping[str, Mapping[str, bool]]],
    ) -> ValidationReport:
        """Compare decoded emitter tables against the matrix.

        Parameters
        ----------
        matrix:
            The matrix all targets were emitted from.
        decoded:
            ``{target: {identifier: {verb: bool}}}`` as returned by each
            emitter's ``decode`` method.
        """
        expected = matrix.as_dict()
        violations: list[Violation] = []
        for target, table in decoded.items():
            for identifier in table:
                if identifier not in expected:
                    violations.append(
                        Violation(identifier, ViolationKind.CROSS_TARGET_MISMATCH, f"Target {target!r} emits an unknown entity")
                    )
            for identifier, row in expected.items():
                emitted = table.get(identifier)
                if emitted is None:
                    violations.append(
                        Violation(identifier, ViolationKind.CROSS_TARGET_MISMATCH, f"Target {target!r} has no row")
                    )
                    continue
                for verb in sorted(set(row) | set(emitted)):
                    if emitted.get(verb) != row.get(verb):
                        violations.append(
                            Violation(
                                identifier,
                                ViolationKind.CROSS_TARGET_MISMATCH,
                                f"Target {target!r} emits {emitted.get(verb)!r}, matrix holds {row.get(verb)!r}",
                                verb=verb,
                            )
                        )
        return ValidationReport(tuple(violations))

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_verbs(matrix: PermissionMatrix, schema: Schema) -> list[Violation]:
        violations: list[Violation] = []
        for verb, count in Counter(schema.verbs).items():
            if count > 1:
                violations.append(
                    Violation("<verbs>", ViolationKind.DUPLICATE_VERB, f"Verb {verb!r} is declared {count} times", verb=verb)
                )
        if tuple(matrix.verbs) != tuple(schema.verbs):
            violations.append(
                Violation(
                    "<verbs>",
                    ViolationKind.VERB_SET_MISMATCH,
                    f"Matrix verbs {list(matrix.verbs)} differ from schema verbs {list(schema.verbs)}",
                )
            )
        return violations

    @staticmethod
    def _check_uniqueness(matrix: PermissionMatrix) -> list[Violation]:
        counts = Counter(entry.identifier for entry in matrix)
        return [
            Violation(identifier, ViolationKind.DUPLICATE_IDENTIFIER, f"Identifier appears {count} times in the matrix")
            for identifier, count in counts.items()
            if count > 1
        ]

    @staticmethod
    def _check_completeness(matrix: PermissionMatrix, schema: Schema) -> list[Violation]:
        violations: list[Violation] = []
        present = set(matrix.identifiers())
        declared = schema.entity_identifiers()
        for identifier in dict.fromkeys(declared):
            if identifier not in present:
                violations.append(
                    Violation(identifier, ViolationKind.MISSING_ROW, "Declared entity has no matrix row")
                )
        declared_set = set(declared)
        for identifier in dict.fromkeys(matrix.identifiers()):
            if identifier not in declared_set:
                violations.append(
                    Violation(identifier, ViolationKind.UNKNOWN_ENTITY, "Matrix row has no declared entity")
                )
        return violations

    @staticmethod
    def _check_shape(matrix: PermissionMatrix, schema: Schema) -> list[Violation]:
        violations: list[Violation] = []
        declared = set(schema.verbs)
        for entry in matrix:
            row_verbs = [verb for verb, _ in entry.cells]
            for verb in dict.fromkeys(schema.verbs):
                if verb not in row_verbs:
                    violations.append(
                        Violation(entry.identifier, ViolationKind.MISSING_VERB, f"Row has no entry for {verb!r}", verb=verb)
                    )
            for verb, value in entry.cells:
                if verb not in declared:
                    violations.append(
                        Violation(entry.identifier, ViolationKind.UNDECLARED_VERB, f"Row has an entry for undeclared verb {verb!r}", verb=verb)
                    )
                if not isinstance(value, bool):
                    violations.append(
                        Violation(entry.identifier, ViolationKind.NON_BOOLEAN, f"Value for {verb!r} is {value!r}, not a boolean", verb=verb)
                    )
        return violations
