"""Compilation pipeline: Loader -> Builder -> Validator -> Emitter(s).

The compiler resolves every requested target before doing any work, builds
and validates the matrix once, then renders each target from the same
immutable matrix.  Targets may render on a thread pool; results are always
returned in requested order, so parallel and sequential runs are identical.

Example
-------
>>> compiler = AccessCompiler()
>>> result = compiler.compile_file("permissions.yaml", ["typescript", "go"])
>>> sorted(result.outputs)
['go', 'typescript']
"""
from __future__ import annotations

import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from aumos_access_compiler.emitters import Emitter, EmitterRegistry, default_registry
from aumos_access_compiler.matrix.builder import MatrixBuilder
from aumos_access_compiler.matrix.table import PermissionMatrix
from aumos_access_compiler.matrix.validator import MatrixValidator, ValidationReport
from aumos_access_compiler.schema.loader import SchemaLoader
from aumos_access_compiler.schema.model import Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationResult:
    """Everything one compiler run produced.

    Attributes
    ----------
    schema:
        The loaded schema.
    matrix:
        The validated permission matrix.
    report:
        The (empty) validation report for the matrix.
    outputs:
        Rendered text per target, in requested order.
    emitters:
        The emitter instance used for each target.
    """

    schema: Schema
    matrix: PermissionMatrix
    report: ValidationReport
    outputs: dict[str, str] = field(default_factory=dict)
    emitters: dict[str, Emitter] = field(default_factory=dict)

    def write(
        self,
        output_dir: str | Path,
        filenames: Mapping[str, str] | None = None,
    ) -> list[Path]:
        """Write every output under *output_dir*.

        All files are first written next to their destination and only moved
        into place once every write succeeded.

        Returns
        -------
        list[Path]
            Destination paths in target order.

        Raises
        ------
        ValueError
            If two targets would be written to the same file.  Nothing is
            written in that case.
        """
        output_dir = Path(output_dir)
        filenames = filenames or {}
        destinations = {
            target: output_dir / (filenames.get(target) or self.emitters[target].default_filename(self.schema.name))
            for target in self.outputs
        }
        seen = Counter(destinations.values())
        clashes = sorted(str(path) for path, count in seen.items() if count > 1)
        if clashes:
            raise ValueError(f"Several targets would write the same file: {clashes}")
        output_dir.mkdir(parents=True, exist_ok=True)

        staged: list[tuple[Path, Path]] = []
        try:
            for target, text in self.outputs.items():
                destination = destinations[target]
                temp_path = destination.with_name(f".{destination.name}.tmp")
                with temp_path.open("w", encoding="utf-8", newline="\n") as fh:
                    fh.write(text)
                staged.append((temp_path, destination))
        except OSError:
            for temp_path, _ in staged:
                temp_path.unlink(missing_ok=True)
            raise

        for temp_path, destination in staged:
            os.replace(temp_path, destination)
            logger.info("Wrote %s", destination)
        return [destination for _, destination in staged]


class AccessCompiler:
    """Runs the full compilation pipeline.

    Parameters
    ----------
    registry:
        Emitter registry to resolve targets from.  Defaults to the built-in
        registry.
    loader:
        Schema loader used by :meth:`compile_file` and :meth:`compile_string`.
    parallel:
        Render targets on a thread pool.
    max_workers:
        Thread pool size when ``parallel`` is set.
    """

    def __init__(
        self,
        registry: EmitterRegistry | None = None,
        loader: SchemaLoader | None = None,
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry
        self._loader = loader if loader is not None else SchemaLoader()
        self._builder = MatrixBuilder()
        self._validator = MatrixValidator()
        self._parallel = parallel
        self._max_workers = max_workers

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def compile_file(
        self,
        schema_path: str | Path,
        targets: Iterable[str],
        options: Mapping[str, Mapping[str, object]] | None = None,
    ) -> CompilationResult:
        emitters = self._resolve(targets, options)
        return self._run(self._loader.load(schema_path), emitters)

    def compile_string(
        self,
        yaml_string: str,
        targets: Iterable[str],
        options: Mapping[str, Mapping[str, object]] | None = None,
        source: str | None = None,
    ) -> CompilationResult:
        emitters = self._resolve(targets, options)
        return self._run(self._loader.load_from_yaml_string(yaml_string, source=source), emitters)

    def compile(
        self,
        schema: Schema,
        targets: Iterable[str],
        options: Mapping[str, Mapping[str, object]] | None = None,
    ) -> CompilationResult:
        """Compile an already-loaded schema for every target.

        Raises
        ------
        UnsupportedTargetError
            Before anything is built, if a target is unknown.
        IncompleteRowError
            If a row lacks a declared verb.
        ValidationFailure
            If the built matrix has any violation.
        """
        return self._run(schema, self._resolve(targets, options))

    def build(self, schema: Schema) -> tuple[PermissionMatrix, ValidationReport]:
        """Build and validate a matrix without emitting anything."""
        matrix = self._builder.build(schema)
        return matrix, self._validator.validate(matrix, schema)

    def verify(self, result: CompilationResult) -> ValidationReport:
        """Decode every table-emitting output and compare it with the matrix."""
        decoded = {
            target: result.emitters[target].decode(text)
            for target, text in result.outputs.items()
            if result.emitters[target].emits_table
        }
        return self._validator.check_cross_target(result.matrix, decoded)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve(
        self,
        targets: Iterable[str],
        options: Mapping[str, Mapping[str, object]] | None,
    ) -> dict[str, Emitter]:
        options = options or {}
        requested = list(dict.fromkeys(targets))
        self._registry.resolve(requested)
        return {
            target: self._registry.create(target, **dict(options.get(target, {})))
            for target in requested
        }

    def _run(self, schema: Schema, emitters: dict[str, Emitter]) -> CompilationResult:
        matrix, report = self.build(schema)
        report.raise_if_failed()

        targets = list(emitters)
        if self._parallel and len(targets) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                texts = list(executor.map(lambda t: emitters[t].emit(matrix, schema), targets))
        else:
            texts = [emitters[target].emit(matrix, schema) for target in targets]

        logger.info("Compiled schema %r for targets: %s", schema.name, ", ".join(targets) or "none")
        return CompilationResult(
            schema=schema,
            matrix=matrix,
            report=report,
            outputs=dict(zip(targets, texts)),
            emitters=dict(emitters),
        )
