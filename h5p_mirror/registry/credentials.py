"""Registry credentials for the npm CLI."""

from __future__ import annotations

from pathlib import Path

DEFAULT_REGISTRY = "registry.npmjs.org"


def npmrc_line(token: str, registry: str = DEFAULT_REGISTRY) -> str:
    return f"//{registry}/:_authToken={token}"


def write_npmrc(path: str | Path, token: str, registry: str = DEFAULT_REGISTRY) -> Path:
    """Write an ``.npmrc`` that authenticates npm against *registry*.

    The file is overwritten; it is meant to be owned by the mirror's CI user.
    """
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(npmrc_line(token, registry), encoding="utf-8")
    return path
