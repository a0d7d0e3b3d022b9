"""The discover -> install -> publish loop.

Installing one content type can make others installable (or install them as
dependencies), so the catalog is fetched again after every install round and
the loop only stops once no entry is both uninstalled and installable.

States::

    SCANNING --(pending entry)--> INSTALLING --(round done)--> SCANNING
    SCANNING --(nothing pending)--> DONE
"""

from __future__ import annotations

from enum import Enum

from rich.console import Console
from rich.markup import escape

from h5p_mirror.errors import CatalogNotConvergedError
from h5p_mirror.hub.models import MIRROR_USER, CatalogEntry, HubUser, InstalledLibrary
from h5p_mirror.hub.session import HubSession
from h5p_mirror.registry.package import RegistryPackage
from h5p_mirror.registry.publisher import PublishDispatcher, RunOutcome
from h5p_mirror.storage import LibraryStorage


class MirrorState(Enum):
    SCANNING = "scanning"
    INSTALLING = "installing"
    DONE = "done"


def next_pending(catalog: tuple[CatalogEntry, ...]) -> CatalogEntry | None:
    """Return the first entry that is installable but not installed."""
    for entry in catalog:
        if entry.is_pending:
            return entry
    return None


class MirrorLoop:
    """Installs and publishes until the catalog has nothing left to install."""

    def __init__(
        self,
        session: HubSession,
        storage: LibraryStorage,
        dispatcher: PublishDispatcher,
        operator: str,
        user: HubUser = MIRROR_USER,
        max_iterations: int | None = None,
        console: Console | None = None,
    ):
        self.session = session
        self.storage = storage
        self.dispatcher = dispatcher
        self.operator = operator
        self.user = user
        self.max_iterations = max_iterations
        self.console = console or Console()
        self.state = MirrorState.SCANNING
        self.iterations = 0

    def run(self) -> RunOutcome:
        """Drive the loop to completion and return the publish tally.

        Only publish failures are absorbed (by the dispatcher). Catalog,
        install, manifest and filesystem errors propagate to the caller.
        """
        outcome = RunOutcome()
        candidate: CatalogEntry | None = None
        self.state = MirrorState.SCANNING

        while self.state is not MirrorState.DONE:
            if self.state is MirrorState.SCANNING:
                catalog = tuple(self.session.get_catalog(self.user))
                candidate = next_pending(catalog)
                if candidate is None:
                    self.state = MirrorState.DONE
                elif self.max_iterations is not None and self.iterations >= self.max_iterations:
                    raise CatalogNotConvergedError(self.iterations)
                else:
                    self.state = MirrorState.INSTALLING
            else:
                self._install_round(candidate, outcome)
                self.iterations += 1
                self.state = MirrorState.SCANNING

        return outcome

    def _install_round(self, entry: CatalogEntry, outcome: RunOutcome) -> None:
        self.console.print(
            f"{escape(f'[{entry.machine_name}]')} "
            "Downloading updated/new content type from Hub..."
        )
        installed = list(self.session.install(entry.machine_name, self.user))
        for lib in installed:
            self._publish(lib, outcome)

    def _publish(self, installed: InstalledLibrary, outcome: RunOutcome) -> None:
        identity = installed.new_version
        self.console.print(
            f"{escape(f'[{identity.uber_name}]')} "
            f"Publishing {installed.type.value} library to NPM registry..."
        )
        manifest = self.session.load_manifest(identity)
        package_dir = self.storage.package_dir(manifest.identity)
        RegistryPackage.from_manifest(manifest, self.operator).write(package_dir)
        self.dispatcher.dispatch(installed, package_dir, outcome)
