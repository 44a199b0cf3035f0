#!/usr/bin/env python3
"""Example: Quickstart — aumos-access-compiler

Minimal working example: load a permission schema, build the matrix,
look up a few cells and emit a TypeScript module.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install aumos-access-compiler
"""
from __future__ import annotations

import aumos_access_compiler as ac


def main() -> None:
    print(f"aumos-access-compiler version: {ac.__version__}")

    # Step 1: Load a schema
    schema = ac.SchemaLoader().load_from_dict({
        "permissions": ["Create", "Delete", "List", "Read", "Update"],
        "resources": [
            {
                "name": "Prototype1",
                "permissions": {"Create": False, "Delete": False, "List": True, "Read": True, "Update": True},
                "fields": [
                    {
                        "name": "protocol",
                        "permissions": {"Create": False, "Delete": False, "List": True, "Read": True, "Update": False},
                    }
                ],
            }
        ],
    })
    print(f"Schema loaded: {len(schema.resources)} resource(s), {schema.field_count} field(s)")

    # Step 2: Compile
    result = ac.AccessCompiler().compile(schema, ["typescript"])

    print("\nLookups:")
    for entity, verb in [("Prototype1", "List"), ("Prototype1", "Create"), ("Prototype1.protocol", "Update")]:
        print(f"  requiresPermission({entity}, {verb}) = {result.matrix.requires_permission(entity, verb)}")

    # Step 3: Emitted output
    print("\nTypeScript output:")
    print(result.outputs["typescript"])


if __name__ == "__main__":
    main()
