"""Translate H5P identifiers and manifest fields into npm metadata."""

from __future__ import annotations

from h5p_mirror.hub.models import LibraryDependency, LibraryManifest

LICENSE_FALLBACK = "see license in GitHub Repository"

# H5P license codes that are not valid SPDX identifiers.
SPDX_LICENSES: dict[str, str] = {
    "MPL": "MPL-1.0",
    "MPL2": "MPL-2.0",
    "pd": "Public Domain",
}


def package_name(machine_name: str, operator: str) -> str:
    """Return the scoped npm package name a library is mirrored under.

    Only the first dot is replaced, so ``H5P.Foo.Bar`` becomes
    ``@<operator>/h5p-foo.bar``. Published names depend on this.
    """
    return f"@{operator}/{machine_name.lower().replace('.', '-', 1)}"


def dependency_range(dep: LibraryDependency) -> str:
    """Return a range that accepts any patch of the dependency's minor line."""
    return f"{dep.major_version}.{dep.minor_version}.x"


def dependencies(manifest: LibraryManifest, operator: str) -> dict[str, str]:
    """Map every editor and preloaded dependency to its npm name and range.

    Editor dependencies are merged first; a preloaded dependency with the
    same npm name overwrites the editor one.
    """
    result: dict[str, str] = {}
    for dep in [*manifest.editor_dependencies, *manifest.preloaded_dependencies]:
        result[package_name(dep.machine_name, operator)] = dependency_range(dep)
    return result


def spdx_license(code: str | None) -> str:
    """Normalize an H5P license code. Unknown codes pass through unchanged."""
    if code is None:
        return LICENSE_FALLBACK
    return SPDX_LICENSES.get(code, code)
