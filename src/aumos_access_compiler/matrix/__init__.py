"""Permission matrix: expansion and validation.

Exports the matrix types, the builder that expands a schema into a matrix and
the validator that checks the result before any emission.
"""
from __future__ import annotations

from aumos_access_compiler.matrix.builder import MatrixBuilder
from aumos_access_compiler.matrix.table import MatrixEntry, PermissionMatrix
from aumos_access_compiler.matrix.validator import (
    MatrixValidator,
    ValidationReport,
    Violation,
    ViolationKind,
)

__all__ = [
    "MatrixBuilder",
    "MatrixEntry",
    "MatrixValidator",
    "PermissionMatrix",
    "ValidationReport",
    "Violation",
    "ViolationKind",
]
