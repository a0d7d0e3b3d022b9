"""Top-level run sequencing and exit code mapping."""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

from h5p_mirror.config import MirrorConfig
from h5p_mirror.errors import MirrorError, MissingCredentialError
from h5p_mirror.hub.session import HubSession, SessionFactory, load_session_factory
from h5p_mirror.mirror.loop import MirrorLoop
from h5p_mirror.registry.credentials import write_npmrc
from h5p_mirror.registry.publisher import (
    NpmPublisher,
    Publisher,
    PublishDispatcher,
    RunOutcome,
)
from h5p_mirror.storage import LibraryStorage

EXIT_OK = 0
EXIT_FATAL = 1
MAX_EXIT_CODE = 255


@dataclass
class RunResult:
    exit_code: int
    outcome: RunOutcome = field(default_factory=RunOutcome)


def exit_code_for(outcome: RunOutcome) -> int:
    """Number of failed publishes, clamped to the largest portable exit code."""
    return min(outcome.errors, MAX_EXIT_CODE)


class MirrorRun:
    """One mirror run: credentials, session setup, the loop, and the summary."""

    def __init__(
        self,
        config: MirrorConfig,
        session_factory: SessionFactory | None = None,
        publisher: Publisher | None = None,
        console: Console | None = None,
    ):
        self.config = config
        self._session_factory = session_factory
        self.publisher = publisher or NpmPublisher()
        self.console = console or Console()

    def execute(self) -> RunResult:
        try:
            self.config.check_credentials()
        except MissingCredentialError as e:
            self.console.print(f"[red]{escape(str(e))}[/]")
            return RunResult(EXIT_FATAL)

        try:
            session = self._open_session()
            session.force_catalog_refresh()
            write_npmrc(self.config.npmrc_path, self.config.token, self.config.registry)
        except Exception as e:
            self._fatal(e)
            return RunResult(EXIT_FATAL)

        storage = LibraryStorage(self.config.libraries_dir)
        loop = MirrorLoop(
            session=session,
            storage=storage,
            dispatcher=PublishDispatcher(
                self.publisher, dry_run=self.config.dry_run, console=self.console
            ),
            operator=self.config.operator,
            max_iterations=self.config.max_iterations,
            console=self.console,
        )

        try:
            with storage:
                outcome = loop.run()
        except (Exception, KeyboardInterrupt) as e:
            self._fatal(e)
            return RunResult(EXIT_FATAL, RunOutcome())

        if outcome.ok:
            self.console.print("[green]Finished with no errors![/]")
            return RunResult(EXIT_OK, outcome)

        self.console.print(f"[red]Finished with {outcome.errors} errors![/]")
        return RunResult(exit_code_for(outcome), outcome)

    def _open_session(self) -> HubSession:
        factory = self._session_factory
        if factory is None:
            if not self.config.session_factory:
                raise MirrorError(
                    "No hub session configured. Set H5P_SESSION_FACTORY "
                    "or pass --session-factory."
                )
            factory = load_session_factory(self.config.session_factory)
        return factory(self.config)

    def _fatal(self, error: Exception) -> None:
        self.console.print(f"[red]Fatal error: {escape(str(error) or type(error).__name__)}[/]")
