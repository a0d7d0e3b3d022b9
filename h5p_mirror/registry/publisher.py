"""Publishing prepared package directories to the npm registry.

``NpmPublisher`` runs the npm CLI. ``PublishDispatcher`` wraps any publisher
with the mirror's failure policy: a failed publish is reported and counted,
never raised.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from h5p_mirror.errors import PublishError
from h5p_mirror.hub.models import InstalledLibrary


class Publisher(Protocol):
    def publish(self, package_dir: Path, dry_run: bool = False) -> None:
        """Publish *package_dir*; raise ``PublishError`` on failure."""


@dataclass
class RunOutcome:
    """Tally of a mirror run."""

    errors: int = 0
    published: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.errors == 0


class NpmPublisher:
    """Runs ``npm publish --access=public`` inside a package directory."""

    def __init__(self, npm: str = "npm"):
        self.npm = npm

    def command(self, dry_run: bool = False) -> list[str]:
        cmd = [self.npm, "publish", "--access=public"]
        if dry_run:
            cmd.append("--dry-run")
        return cmd

    def publish(self, package_dir: Path, dry_run: bool = False) -> None:
        try:
            subprocess.run(
                self.command(dry_run),
                cwd=package_dir,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            message = f"Command failed: {' '.join(e.cmd)} (exit {e.returncode})"
            if detail:
                message += f"\n{detail[:5000]}"
            raise PublishError(package_dir, message) from e
        except OSError as e:
            raise PublishError(package_dir, f"Could not run {self.npm}: {e}") from e


class PublishDispatcher:
    """Publishes one library and records the result in a ``RunOutcome``."""

    def __init__(
        self,
        publisher: Publisher,
        dry_run: bool = False,
        console: Console | None = None,
    ):
        self.publisher = publisher
        self.dry_run = dry_run
        self.console = console or Console()

    def dispatch(
        self,
        installed: InstalledLibrary,
        package_dir: Path,
        outcome: RunOutcome,
    ) -> bool:
        """Publish *package_dir*. Returns False and counts an error on failure."""
        uber_name = installed.new_version.uber_name
        label = escape(f"[{uber_name}]")
        try:
            self.publisher.publish(package_dir, dry_run=self.dry_run)
        except PublishError as e:
            self.console.print(f"[red]{label} Error publishing to NPM registry![/]")
            self.console.print(escape(e.message), highlight=False)
            outcome.errors += 1
            outcome.failed.append(uber_name)
            return False

        self.console.print(f"[green]{label} published![/]")
        outcome.published.append(uber_name)
        return True
