"""Error taxonomy for the access compiler.

Every failure raised by the pipeline derives from :class:`AccessCompilerError`
and is fatal to the compilation run that triggered it.  Each error carries
structured attributes (entity identifier, verb, defect kind) so a caller can
locate the problem in the schema without re-running anything.

Example
-------
>>> from aumos_access_compiler.errors import IncompleteRowError
>>> err = IncompleteRowError("Prototype1.id", ["Update"])
>>> err.entity, err.missing_verbs
('Prototype1.id', ('Update',))
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from aumos_access_compiler.matrix.validator import ValidationReport


class AccessCompilerError(Exception):
    """Base class for every error raised by the access compiler."""


def _prefixed(message: str, source: str | None) -> str:
    prefix = f"[{source}] " if source else ""
    return f"{prefix}{message}"


class SchemaSyntaxError(AccessCompilerError, ValueError):
    """Raised when a schema source cannot be parsed into a document.

    Attributes
    ----------
    source:
        Path or label of the schema source, if known.
    detail:
        The underlying parse or structure message.
    """

    def __init__(self, detail: str, source: str | None = None) -> None:
        self.source = source
        self.detail = detail
        super().__init__(_prefixed(detail, source))


@dataclass(frozen=True)
class SchemaProblem:
    """One semantic defect found while loading a schema."""

    entity: str
    defect: str
    detail: str

    def __str__(self) -> str:
        return f"{self.entity}: {self.detail} ({self.defect})"


class SchemaSemanticError(AccessCompilerError, ValueError):
    """Raised when a parseable schema breaks identifier or verb rules.

    The loader collects every problem before raising, so ``problems`` lists
    all of them in discovery order.
    """

    def __init__(
        self,
        problems: Iterable[SchemaProblem],
        source: str | None = None,
    ) -> None:
        self.source = source
        self.problems: tuple[SchemaProblem, ...] = tuple(problems)
        if len(self.problems) == 1:
            message = str(self.problems[0])
        else:
            message = f"{len(self.problems)} schema problems: " + "; ".join(
                str(p) for p in self.problems
            )
        super().__init__(_prefixed(message, source))


class IncompleteRowError(AccessCompilerError):
    """Raised by the matrix builder when a row lacks a declared verb.

    Attributes
    ----------
    entity:
        Identifier of the resource or field whose row is incomplete.
    missing_verbs:
        The declared verbs that have no entry, in declaration order.
    """

    def __init__(self, entity: str, missing_verbs: Iterable[str]) -> None:
        self.entity = entity
        self.missing_verbs: tuple[str, ...] = tuple(missing_verbs)
        super().__init__(
            f"Permission row for '{entity}' is missing verb(s): "
            f"{', '.join(self.missing_verbs)}"
        )


class ValidationFailure(AccessCompilerError):
    """Raised when a matrix produces a non-empty validation report."""

    def __init__(self, report: "ValidationReport") -> None:
        self.report = report
        lines = [f"Permission matrix failed validation with {len(report)} violation(s):"]
        lines.extend(f"  - {violation}" for violation in report)
        super().__init__("\n".join(lines))


class EmitterOptionError(AccessCompilerError, TypeError):
    """Raised when an emitter is given an unknown or invalid option."""

    def __init__(self, target: str, detail: str) -> None:
        self.target = target
        self.detail = detail
        super().__init__(f"Invalid option for target {target!r}: {detail}")


class UnsupportedTargetError(AccessCompilerError, KeyError):
    """Raised when an emitter is requested for a target that does not exist."""

    def __init__(self, target: str, available: Iterable[str] = ()) -> None:
        self.target = target
        self.available: tuple[str, ...] = tuple(sorted(available))
        super().__init__(target)

    def __str__(self) -> str:
        return (
            f"Unsupported target {self.target!r}. "
            f"Available targets: {', '.join(self.available) or 'none'}."
        )
