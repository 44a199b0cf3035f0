"""Target-language emitters.

Importing this package registers the built-in targets with
:data:`~aumos_access_compiler.emitters.registry.default_registry`:
``typescript``, ``typescript-enums``, ``python`` and ``go``.
"""
from __future__ import annotations

from aumos_access_compiler.emitters.base import EmissionModel, Emitter, FieldBlock
from aumos_access_compiler.emitters.golang import GoEmitter
from aumos_access_compiler.emitters.python import PythonEmitter
from aumos_access_compiler.emitters.registry import (
    EmitterRegistry,
    TargetAlreadyRegisteredError,
    default_registry,
)
from aumos_access_compiler.emitters.typescript import (
    TypeScriptEmitter,
    TypeScriptEnumsEmitter,
)

__all__ = [
    "EmissionModel",
    "Emitter",
    "EmitterRegistry",
    "FieldBlock",
    "GoEmitter",
    "PythonEmitter",
    "TargetAlreadyRegisteredError",
    "TypeScriptEmitter",
    "TypeScriptEnumsEmitter",
    "default_registry",
]
