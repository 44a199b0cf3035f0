"""Project configuration loader with Pydantic v2 validation.

Loads ``access-compiler.yaml`` into a typed :class:`CompilerConfig`.  Every
section is optional.

Example
-------
::

    schema_path: permissions.yaml
    output_dir: generated
    parallel: false
    strict: true
    targets:
      - name: typescript
        output: permissions.ts
      - name: go
        options:
          package: access

>>> config = ConfigLoader().load(Path("access-compiler.yaml"))
>>> [t.name for t in config.targets]
['typescript', 'go']
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path("access-compiler.yaml")


class TargetConfig(BaseModel):
    """One emission target."""

    model_config = {"extra": "forbid"}

    name: str
    output: str | None = Field(default=None)
    options: dict[str, object] = Field(default_factory=dict)

    @field_validator("output")
    @classmethod
    def output_must_be_a_filename(cls, value: str | None) -> str | None:
        if value is not None and (not value or Path(value).name != value):
            raise ValueError(f"output must be a bare file name, got {value!r}")
        return value


class CompilerConfig(BaseModel):
    """Top-level compiler configuration."""

    model_config = {"extra": "allow"}

    schema_path: Path = Field(default=Path("permissions.yaml"))
    output_dir: Path = Field(default=Path("generated"))
    parallel: bool = Field(default=False)
    strict: bool = Field(default=False)
    targets: list[TargetConfig] = Field(
        default_factory=lambda: [TargetConfig(name="typescript")]
    )

    @field_validator("targets")
    @classmethod
    def targets_must_be_unique(cls, values: list[TargetConfig]) -> list[TargetConfig]:
        names = [t.name for t in values]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate targets: {duplicates}")
        outputs = [t.output for t in values if t.output]
        clashes = sorted({o for o in outputs if outputs.count(o) > 1})
        if clashes:
            raise ValueError(f"Duplicate outputs: {clashes}")
        return values

    def target_names(self) -> list[str]:
        return [t.name for t in self.targets]

    def target_options(self) -> dict[str, dict[str, object]]:
        return {t.name: dict(t.options) for t in self.targets}

    def filenames(self) -> dict[str, str]:
        return {t.name: t.output for t in self.targets if t.output}

    def resolve_paths(self, base_dir: Path) -> CompilerConfig:
        """Return a copy with relative paths anchored at *base_dir*."""
        return self.model_copy(
            update={
                "schema_path": self.schema_path if self.schema_path.is_absolute() else base_dir / self.schema_path,
                "output_dir": self.output_dir if self.output_dir.is_absolute() else base_dir / self.output_dir,
            }
        )


class ConfigLoader:
    """Loads and validates compiler YAML configuration."""

    def load(self, config_path: Path) -> CompilerConfig:
        """Load a config file; relative paths resolve against its directory.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Compiler config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        return CompilerConfig.model_validate(raw).resolve_paths(config_path.parent)

    def load_string(self, yaml_content: str) -> CompilerConfig:
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return CompilerConfig.model_validate(raw)

    def defaults(self) -> CompilerConfig:
        """Return a default configuration with all defaults applied."""
        return CompilerConfig()
