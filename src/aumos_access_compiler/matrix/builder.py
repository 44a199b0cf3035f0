"""Matrix builder: expands a schema into a complete permission matrix.

Each resource contributes its own row under its name, followed by one row per
owned field under ``resource.field``.  Field rows are copied as authored; they
are never merged with, or filled in from, the owning resource's row.  Verbs
that a row does not mention are an authoring error, not an implicit ``False``.
"""
from __future__ import annotations

import logging
from typing import Mapping

from aumos_access_compiler.errors import IncompleteRowError
from aumos_access_compiler.matrix.table import MatrixEntry, PermissionMatrix
from aumos_access_compiler.schema.model import Schema

logger = logging.getLogger(__name__)


class MatrixBuilder:
    """Builds a :class:`PermissionMatrix` from a loaded :class:`Schema`.

    Example
    -------
    ::

        matrix = MatrixBuilder().build(schema)
        len(matrix) == len(schema.resources) + schema.field_count
    """

    def build(self, schema: Schema) -> PermissionMatrix:
        """Expand every resource and field of *schema* into a matrix row.

        Raises
        ------
        IncompleteRowError
            If an entity has no row, or its row lacks a declared verb.
        """
        entries: list[MatrixEntry] = []
        for identifier, resource, field_def in schema.iter_entities():
            row = resource.permissions if field_def is None else field_def.permissions
            cells = self._expand_row(identifier, row, schema.verbs)
            entries.append(
                MatrixEntry(
                    identifier=identifier,
                    resource=resource.name,
                    field=None if field_def is None else field_def.name,
                    cells=cells,
                    domain=resource.domain,
                )
            )
            logger.debug("Expanded row %s: %s", identifier, dict(cells))

        matrix = PermissionMatrix(verbs=tuple(schema.verbs), entries=tuple(entries))
        logger.info(
            "Built permission matrix: %d entries x %d verbs",
            len(matrix),
            len(matrix.verbs),
        )
        return matrix

    @staticmethod
    def _expand_row(
        identifier: str,
        row: Mapping[str, bool] | None,
        verbs: tuple[str, ...],
    ) -> tuple[tuple[str, bool], ...]:
        if row is None:
            raise IncompleteRowError(identifier, verbs)

        missing = [verb for verb in verbs if verb not in row]
        if missing:
            raise IncompleteRowError(identifier, missing)

        # Undeclared verbs are kept at the end for the validator to report.
        cells = [(verb, row[verb]) for verb in verbs]
        cells.extend((verb, value) for verb, value in row.items() if verb not in verbs)
        return tuple(cells)
