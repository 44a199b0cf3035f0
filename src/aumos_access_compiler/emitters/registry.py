"""Decorator-based registry of emitter targets.

Emitter classes register themselves under a target name when their module is
imported.  Looking up an unknown target raises
:class:`~aumos_access_compiler.errors.UnsupportedTargetError`.

Example
-------
::

    from aumos_access_compiler.emitters.registry import default_registry

    @default_registry.register("kotlin")
    class KotlinEmitter(Emitter):
        ...

    emitter = default_registry.create("kotlin")
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable

from aumos_access_compiler.emitters.base import Emitter
from aumos_access_compiler.errors import UnsupportedTargetError

logger = logging.getLogger(__name__)


class TargetAlreadyRegisteredError(ValueError):
    """Raised when two emitters claim the same target name."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Target {target!r} is already registered.")


class EmitterRegistry:
    """Maps target names to :class:`Emitter` subclasses."""

    def __init__(self) -> None:
        self._emitters: dict[str, type[Emitter]] = {}

    def register(self, target: str) -> Callable[[type[Emitter]], type[Emitter]]:
        """Class decorator registering an emitter under *target*."""

        def decorator(emitter_class: type[Emitter]) -> type[Emitter]:
            self.register_class(target, emitter_class)
            return emitter_class

        return decorator

    def register_class(self, target: str, emitter_class: type[Emitter]) -> None:
        if not (isinstance(emitter_class, type) and issubclass(emitter_class, Emitter)):
            raise TypeError(f"{emitter_class!r} is not an Emitter subclass.")
        if target in self._emitters:
            raise TargetAlreadyRegisteredError(target)
        self._emitters[target] = emitter_class
        logger.debug("Registered emitter %s for target %r", emitter_class.__name__, target)

    def deregister(self, target: str) -> None:
        if target not in self._emitters:
            raise UnsupportedTargetError(target, self._emitters)
        del self._emitters[target]

    def get(self, target: str) -> type[Emitter]:
        """Return the emitter class for *target*.

        Raises
        ------
        UnsupportedTargetError
            If no emitter is registered under that name.
        """
        try:
            return self._emitters[target]
        except KeyError:
            raise UnsupportedTargetError(target, self._emitters) from None

    def create(self, target: str, **options: object) -> Emitter:
        return self.get(target)(**options)

    def resolve(self, targets: Iterable[str]) -> list[type[Emitter]]:
        """Look up every target up front, failing before any is used."""
        return [self.get(target) for target in targets]

    def list_targets(self) -> list[str]:
        return sorted(self._emitters)

    def __contains__(self, target: object) -> bool:
        return target in self._emitters

    def __len__(self) -> int:
        return len(self._emitters)


default_registry = EmitterRegistry()
