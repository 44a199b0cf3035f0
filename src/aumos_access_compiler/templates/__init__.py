"""Starter schema templates for aumos-access-compiler.

Provides bundled YAML permission schemas used by ``access-compiler init``.
"""
from __future__ import annotations

from aumos_access_compiler.templates.schema_templates import (
    TEMPLATES,
    get_template,
    list_templates,
    write_template,
)

__all__ = [
    "TEMPLATES",
    "get_template",
    "list_templates",
    "write_template",
]
