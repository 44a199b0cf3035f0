#!/usr/bin/env python3
"""Example: Multi-target compilation — aumos-access-compiler

Compiles one schema to every built-in target on a thread pool, checks that
all emitted tables agree, and writes them to a directory.

Usage:
    python examples/02_multi_target.py [OUTPUT_DIR]
"""
from __future__ import annotations

import sys
from pathlib import Path

import aumos_access_compiler as ac
from aumos_access_compiler.templates import get_template


def main() -> None:
    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("generated")

    compiler = ac.AccessCompiler(parallel=True)
    result = compiler.compile_string(
        get_template("tenant"),
        ac.default_registry.list_targets(),
        options={"go": {"package": "access"}},
    )

    report = compiler.verify(result)
    print(f"Cross-target check: {'OK' if report.is_valid else f'{len(report)} mismatch(es)'}")

    for path in result.write(output_dir):
        print(f"  wrote {path}")

    print("\nEntities granting Update:")
    for identifier in result.matrix.granted("Update"):
        print(f"  {identifier} (domain: {result.matrix.domain_of(identifier)})")


if __name__ == "__main__":
    main()
