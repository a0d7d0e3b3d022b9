"""Hub data models: catalog entries, library identities, and manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class InstallType(Enum):
    """How an installed library relates to what was in storage before."""

    NEW = "new"
    UPGRADE = "upgrade"
    PATCH = "patch"


@dataclass(frozen=True)
class CatalogEntry:
    """One content type as the hub catalog sees it relative to local storage."""

    machine_name: str
    installed: bool = False
    can_install: bool = False

    @property
    def is_pending(self) -> bool:
        """True when the entry is installable but not installed yet."""
        return not self.installed and self.can_install


@dataclass(frozen=True)
class LibraryIdentity:
    """Machine name plus version triple of a single library."""

    machine_name: str
    major_version: int
    minor_version: int
    patch_version: int = 0

    @property
    def uber_name(self) -> str:
        return f"{self.machine_name}-{self.major_version}.{self.minor_version}"

    @property
    def version(self) -> str:
        return f"{self.major_version}.{self.minor_version}.{self.patch_version}"


@dataclass(frozen=True)
class InstalledLibrary:
    """A library the hub session put into storage during one install call."""

    new_version: LibraryIdentity
    type: InstallType = InstallType.NEW


@dataclass(frozen=True)
class LibraryDependency:
    """A reference from one library to another library's minor version line."""

    machine_name: str
    major_version: int
    minor_version: int


@dataclass(frozen=True)
class HubUser:
    """The user identity the hub session acts on behalf of."""

    id: str = "1"
    name: str = ""
    type: str = ""
    can_create_restricted: bool = True
    can_install_recommended: bool = True
    can_update_and_install_libraries: bool = True


# Unattended mirror runs need every install permission.
MIRROR_USER = HubUser()


@dataclass
class LibraryManifest:
    """Metadata of an installed library, as stored in its ``library.json``."""

    machine_name: str
    major_version: int
    minor_version: int
    patch_version: int = 0
    license: str | None = None
    author: str | None = None
    editor_dependencies: list[LibraryDependency] = field(default_factory=list)
    preloaded_dependencies: list[LibraryDependency] = field(default_factory=list)

    @property
    def identity(self) -> LibraryIdentity:
        return LibraryIdentity(
            machine_name=self.machine_name,
            major_version=self.major_version,
            minor_version=self.minor_version,
            patch_version=self.patch_version,
        )

    @classmethod
    def from_library_json(cls, data: dict[str, Any]) -> "LibraryManifest":
        """Build a manifest from the parsed contents of an H5P ``library.json``."""
        return cls(
            machine_name=data["machineName"],
            major_version=int(data["majorVersion"]),
            minor_version=int(data["minorVersion"]),
            patch_version=int(data.get("patchVersion", 0)),
            license=data.get("license"),
            author=data.get("author"),
            editor_dependencies=_dependencies(data.get("editorDependencies")),
            preloaded_dependencies=_dependencies(data.get("preloadedDependencies")),
        )


def _dependencies(raw: list[dict[str, Any]] | None) -> list[LibraryDependency]:
    return [
        LibraryDependency(
            machine_name=d["machineName"],
            major_version=int(d["majorVersion"]),
            minor_version=int(d["minorVersion"]),
        )
        for d in raw or []
    ]
