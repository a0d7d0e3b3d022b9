"""npm package descriptors built from installed library manifests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from h5p_mirror.hub.models import LibraryManifest
from h5p_mirror.registry.naming import dependencies, package_name, spdx_license

PACKAGE_FILE = "package.json"

_DESCRIPTION = (
    "An unofficial mirrored version of the distribution files of the "
    "H5P library {machine_name} from the H5P Hub"
)


@dataclass
class RegistryPackage:
    """The ``package.json`` written next to a library's distribution files."""

    name: str
    version: str
    description: str = ""
    license: str = ""
    author: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: LibraryManifest, operator: str) -> "RegistryPackage":
        """Derive the package descriptor for a library published by *operator*."""
        return cls(
            name=package_name(manifest.machine_name, operator),
            version=manifest.identity.version,
            description=_DESCRIPTION.format(machine_name=manifest.machine_name),
            license=spdx_license(manifest.license),
            author=f"{manifest.author or 'Unknown'} (uploaded by {operator})",
            dependencies=dependencies(manifest, operator),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "license": self.license,
            "author": self.author,
            "dependencies": dict(self.dependencies),
        }

    def write(self, package_dir: str | Path) -> Path:
        """Write ``package.json`` into *package_dir* and return its path."""
        path = Path(package_dir) / PACKAGE_FILE
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f)
        return path

