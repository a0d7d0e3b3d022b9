"""The hub session contract and how a concrete session gets loaded.

A session wraps whatever H5P editor implementation the operator runs (it
owns the catalog cache, downloads packages from the Hub, and writes library
files into storage). The mirror only needs the four calls below.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Callable, Protocol, Sequence

from h5p_mirror.errors import SessionFactoryError
from h5p_mirror.hub.models import (
    CatalogEntry,
    HubUser,
    InstalledLibrary,
    LibraryIdentity,
    LibraryManifest,
)

if TYPE_CHECKING:
    from h5p_mirror.config import MirrorConfig


class HubSession(Protocol):
    """Catalog query, install and manifest load against local storage."""

    def force_catalog_refresh(self) -> None:
        """Re-download the content type catalog from the Hub."""

    def get_catalog(self, user: HubUser) -> Sequence[CatalogEntry]:
        """Return the catalog with install state relative to local storage."""

    def install(self, machine_name: str, user: HubUser) -> Sequence[InstalledLibrary]:
        """Install a content type and its dependencies; return what was installed."""

    def load_manifest(self, identity: LibraryIdentity) -> LibraryManifest:
        """Read the manifest of an installed library."""


SessionFactory = Callable[["MirrorConfig"], HubSession]


def load_session_factory(spec: str) -> SessionFactory:
    """Resolve a ``"package.module:callable"`` string to a session factory.

    Raises:
        SessionFactoryError: If the string is malformed, the module cannot be
            imported, or the attribute is missing or not callable.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise SessionFactoryError(spec, "expected the form 'module:callable'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SessionFactoryError(spec, str(exc)) from exc

    target = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise SessionFactoryError(spec, f"no attribute '{part}'") from exc

    if not callable(target):
        raise SessionFactoryError(spec, "target is not callable")
    return target
