"""aumos-access-compiler — Authorization-matrix compiler.

Compiles a declarative permission schema (resources, their fields and the
permission verbs that apply to them) into a verified, exhaustive decision
table plus a lookup function, emitted identically for several languages.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_access_compiler as ac
>>> ac.__version__
'0.1.0'
>>> schema = ac.SchemaLoader().load_from_dict({
...     "permissions": ["Read"],
...     "resources": [{"name": "Account", "permissions": {"Read": True}}],
... })
>>> result = ac.AccessCompiler().compile(schema, ["typescript"])
>>> result.matrix.requires_permission("Account", "Read")
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

from aumos_access_compiler.compiler import AccessCompiler, CompilationResult
from aumos_access_compiler.config import CompilerConfig, ConfigLoader, TargetConfig

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from aumos_access_compiler.errors import (
    AccessCompilerError,
    EmitterOptionError,
    IncompleteRowError,
    SchemaProblem,
    SchemaSemanticError,
    SchemaSyntaxError,
    UnsupportedTargetError,
    ValidationFailure,
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
from aumos_access_compiler.schema.loader import SchemaLoader
from aumos_access_compiler.schema.model import (
    DEFAULT_VERBS,
    GLOBAL_DOMAIN,
    FieldDefinition,
    ResourceDefinition,
    Schema,
    field_identifier,
    split_identifier,
)

# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------
from aumos_access_compiler.matrix.builder import MatrixBuilder
from aumos_access_compiler.matrix.table import MatrixEntry, PermissionMatrix
from aumos_access_compiler.matrix.validator import (
    MatrixValidator,
    ValidationReport,
    Violation,
    ViolationKind,
)

# ---------------------------------------------------------------------------
# Emitters
# ---------------------------------------------------------------------------
from aumos_access_compiler.emitters import (
    Emitter,
    EmitterRegistry,
    GoEmitter,
    PythonEmitter,
    TypeScriptEmitter,
    TypeScriptEnumsEmitter,
    default_registry,
)

__all__ = [
    "__version__",
    "AccessCompiler",
    "CompilationResult",
    # Config
    "CompilerConfig",
    "ConfigLoader",
    "TargetConfig",
    # Errors
    "AccessCompilerError",
    "EmitterOptionError",
    "IncompleteRowError",
    "SchemaProblem",
    "SchemaSemanticError",
    "SchemaSyntaxError",
    "UnsupportedTargetError",
    "ValidationFailure",
    # Schema
    "DEFAULT_VERBS",
    "GLOBAL_DOMAIN",
    "FieldDefinition",
    "ResourceDefinition",
    "Schema",
    "SchemaLoader",
    "field_identifier",
    "split_identifier",
    # Matrix
    "MatrixBuilder",
    "MatrixEntry",
    "MatrixValidator",
    "PermissionMatrix",
    "ValidationReport",
    "Violation",
    "ViolationKind",
    # Emitters
    "Emitter",
    "EmitterRegistry",
    "GoEmitter",
    "PythonEmitter",
    "TypeScriptEmitter",
    "TypeScriptEnumsEmitter",
    "default_registry",
]
