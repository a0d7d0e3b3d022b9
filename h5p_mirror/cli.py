"""h5p-mirror CLI: mirror H5P Hub content types to the npm registry."""

import json
import os
import sys

import click
from rich.console import Console
from rich.markup import escape

from h5p_mirror import __version__

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """h5p-mirror: publish H5P Hub libraries as npm packages.

    Installs every content type the Hub offers, derives a package.json from
    each installed library and publishes it under your npm scope.
    """


# ── Run ──────────────────────────────────────────────────────────────


@main.command()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="YAML configuration file")
@click.option("--token", envvar="NPM_AUTH_TOKEN", default=None, help="npm auth token")
@click.option("--user", "operator", envvar="NPM_USER", default=None, help="npm user / package scope")
@click.option("--dry-run/--no-dry-run", default=None,
              help="Run npm publish with --dry-run (default: DRY_RUN=true)")
@click.option("--working-dir", "-w", default=None, help="Directory for libraries, content and temp files")
@click.option("--registry", default=None, help="Registry host written to .npmrc")
@click.option("--session-factory", envvar="H5P_SESSION_FACTORY", default=None,
              help="Hub session factory as 'module:callable'")
@click.option("--max-iterations", type=int, default=None,
              help="Abort if the catalog still offers installs after this many rounds")
def run(config_path, token, operator, dry_run, working_dir, registry, session_factory, max_iterations):
    """Install every pending content type from the Hub and publish it to npm.

    Exits with 0 when all publishes succeed, with the number of failed
    publishes otherwise, and with 1 on missing credentials or fatal errors.
    """
    from h5p_mirror.config import DRY_RUN_ENV, load_config, parse_bool
    from h5p_mirror.errors import ConfigError
    from h5p_mirror.mirror.orchestrator import EXIT_FATAL, MirrorRun

    if dry_run is None and DRY_RUN_ENV in os.environ:
        dry_run = parse_bool(os.environ[DRY_RUN_ENV])

    try:
        config = load_config(config_path).merged(
            token=token,
            operator=operator,
            dry_run=dry_run,
            working_dir=working_dir,
            registry=registry,
            session_factory=session_factory,
            max_iterations=max_iterations,
        )
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        sys.exit(EXIT_FATAL)

    result = MirrorRun(config, console=console).execute()
    sys.exit(result.exit_code)


# ── Inspect ──────────────────────────────────────────────────────────


@main.command(name="package-name")
@click.argument("machine_name")
@click.option("--user", "operator", envvar="NPM_USER", required=True, help="npm user / package scope")
def package_name_cmd(machine_name: str, operator: str):
    """Print the npm package name MACHINE_NAME is mirrored under."""
    from h5p_mirror.registry.naming import package_name

    click.echo(package_name(machine_name, operator))


@main.command()
@click.argument("library_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", "operator", envvar="NPM_USER", required=True, help="npm user / package scope")
def preview(library_json: str, operator: str):
    """Print the package.json generated for an H5P library.json file."""
    from h5p_mirror.hub.models import LibraryManifest
    from h5p_mirror.registry.package import RegistryPackage

    try:
        with open(library_json, encoding="utf-8") as f:
            data = json.load(f)
        manifest = LibraryManifest.from_library_json(data)
    except (ValueError, KeyError) as e:
        console.print(f"  [red]Failed to parse:[/] {escape(str(e))}")
        sys.exit(1)

    package = RegistryPackage.from_manifest(manifest, operator)
    click.echo(json.dumps(package.to_dict(), indent=2))


if __name__ == "__main__":
    main()
