"""Run configuration: credentials, paths, and the hub session to use.

Values come from defaults, then an optional YAML file, then the command line
and environment (handled by click in ``h5p_mirror.cli``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from h5p_mirror.errors import ConfigError, MissingCredentialError
from h5p_mirror.registry.credentials import DEFAULT_REGISTRY

TOKEN_ENV = "NPM_AUTH_TOKEN"
USER_ENV = "NPM_USER"
DRY_RUN_ENV = "DRY_RUN"
SESSION_FACTORY_ENV = "H5P_SESSION_FACTORY"

_PATH_FIELDS = {"working_dir", "npmrc_path", "h5p_config"}
_STR_FIELDS = {"token", "operator", "registry", "session_factory"}


@dataclass
class MirrorConfig:
    """Everything a mirror run needs to know."""

    token: str = ""
    operator: str = ""  # npm user / scope the packages are published under
    dry_run: bool = False
    working_dir: Path = Path("working_dir")
    registry: str = DEFAULT_REGISTRY
    npmrc_path: Path = Path("~/.npmrc")
    h5p_config: Path = Path("h5p-config.json")
    session_factory: str = ""  # "module:callable"
    max_iterations: int | None = None

    @property
    def libraries_dir(self) -> Path:
        return self.working_dir / "libraries"

    @property
    def content_dir(self) -> Path:
        return self.working_dir / "content"

    @property
    def temp_dir(self) -> Path:
        return self.working_dir / "temp"

    def check_credentials(self) -> None:
        """Raise ``MissingCredentialError`` for the first missing credential."""
        if not self.token:
            raise MissingCredentialError(TOKEN_ENV, "a NPM token")
        if not self.operator:
            raise MissingCredentialError(USER_ENV, "a NPM username")

    def merged(self, **overrides: Any) -> "MirrorConfig":
        """Return a copy with every non-None override applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in values:
                raise ConfigError(f"Unknown configuration key: {key}")
            values[key] = _coerce(key, value)
        return MirrorConfig(**values)


def load_config(path: str | Path | None = None) -> MirrorConfig:
    """Load a ``MirrorConfig`` from a YAML file, or defaults when *path* is None."""
    config = MirrorConfig()
    if path is None:
        return config

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return config.merged(**data)


def parse_bool(value: Any) -> bool:
    """Only the literal string ``true`` (any case) enables a flag."""
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() == "true"


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw override (YAML or CLI) to the field's type."""
    if key in _PATH_FIELDS:
        return Path(value)
    if key == "dry_run":
        return parse_bool(value)
    if key == "max_iterations":
        if isinstance(value, bool):
            raise ConfigError(f"max_iterations must be an integer, got {value!r}")
        try:
            iterations = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"max_iterations must be an integer, got {value!r}") from e
        if iterations < 1:
            raise ConfigError(f"max_iterations must be at least 1, got {iterations}")
        return iterations
    if key in _STR_FIELDS and not isinstance(value, str):
        return str(value)
    return value
