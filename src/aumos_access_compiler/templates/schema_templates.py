"""Built-in starter schemas.

Templates give ``access-compiler init`` a working schema to start from.

Example
-------
>>> from aumos_access_compiler.templates.schema_templates import list_templates
>>> list_templates()
['crud', 'prototype', 'tenant']
"""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Template definitions
# ---------------------------------------------------------------------------

_PROTOTYPE = """\
# Prototype schema
# ----------------
# One resource with two fields.  Field rows are authored independently of
# the resource row.

version: "1"
name: permissions
permissions: [Create, Delete, List, Read, Update]
resources:
  - name: Prototype1
    permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}
    fields:
      - name: id
        permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}
      - name: protocol
        permissions: {Create: false, Delete: false, List: true, Read: true, Update: true}
"""

_CRUD = """\
# CRUD schema
# -----------
# A user-facing resource whose sensitive fields are read-only.

version: "1"
name: permissions
permissions: [Create, Read, List, Update, Delete]
resources:
  - name: User
    description: Application user accounts.
    permissions: {Create: true, Read: true, List: true, Update: true, Delete: true}
    fields:
      - name: email
        permissions: {Create: true, Read: true, List: true, Update: true, Delete: false}
      - name: passwordHash
        permissions: {Create: false, Read: false, List: false, Update: false, Delete: false}
  - name: AuditEvent
    description: Append-only audit records.
    permissions: {Create: false, Read: true, List: true, Update: false, Delete: false}
"""

_TENANT = """\
# Tenant-scoped schema
# --------------------
# Global resources next to tenant-scoped ones.

version: "1"
name: permissions
permissions: [Create, Read, List, Update, Delete]
domains: [global, tenant]
resources:
  - name: Tenant
    domain: global
    permissions: {Create: true, Read: true, List: true, Update: true, Delete: true}
    fields:
      - name: billingPlan
        permissions: {Create: false, Read: true, List: false, Update: true, Delete: false}
  - name: Project
    domain: tenant
    permissions: {Create: true, Read: true, List: true, Update: true, Delete: false}
    fields:
      - name: owner
        permissions: {Create: true, Read: true, List: true, Update: false, Delete: false}
"""

TEMPLATES: dict[str, str] = {
    "crud": _CRUD,
    "prototype": _PROTOTYPE,
    "tenant": _TENANT,
}


def list_templates() -> list[str]:
    """Return the names of all bundled templates, sorted."""
    return sorted(TEMPLATES)


def get_template(name: str) -> str:
    """Return the YAML text of template *name*.

    Raises
    ------
    KeyError
        If no template has that name.
    """
    if name not in TEMPLATES:
        raise KeyError(
            f"Unknown template {name!r}. Available: {', '.join(list_templates())}"
        )
    return TEMPLATES[name]


def write_template(name: str, output_path: Path) -> Path:
    """Write template *name* to *output_path*, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(get_template(name), encoding="utf-8")
    return output_path
