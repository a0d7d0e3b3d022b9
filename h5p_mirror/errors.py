"""Exceptions raised by the mirror.

Only ``PublishError`` is recoverable: the publish dispatcher turns it into an
error count. Everything else ends the run.
"""

from __future__ import annotations

from pathlib import Path


class MirrorError(Exception):
    """Base class for all mirror errors."""


class ConfigError(MirrorError):
    """The configuration file could not be read or has the wrong shape."""


class MissingCredentialError(ConfigError):
    """A required credential was not provided."""

    def __init__(self, variable: str, description: str):
        self.variable = variable
        self.description = description
        super().__init__(
            f"Incorrect parameters: You must pass {description} "
            f"with the environment variable {variable}!"
        )


class SessionFactoryError(ConfigError):
    """The configured hub session factory could not be resolved."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"Cannot load hub session factory '{spec}': {reason}")


class PublishError(MirrorError):
    """The registry publish tool failed for one package directory."""

    def __init__(self, package_dir: str | Path, message: str):
        self.package_dir = Path(package_dir)
        self.message = message
        super().__init__(message)


class CatalogNotConvergedError(MirrorError):
    """The catalog still offered installable libraries after the iteration cap."""

    def __init__(self, iterations: int):
        self.iterations = iterations
        super().__init__(
            f"Hub catalog did not settle after {iterations} install rounds"
        )
