"""Tests for the install/publish loop."""

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from h5p_mirror.errors import CatalogNotConvergedError
from h5p_mirror.hub.models import CatalogEntry
from h5p_mirror.mirror.loop import MirrorLoop, MirrorState, next_pending
from h5p_mirror.registry.publisher import PublishDispatcher
from h5p_mirror.storage import LibraryStorage
from tests.fakes import FakePublisher, FakeSession, dep, make_manifest


def _console() -> Console:
    return Console(file=io.StringIO(), width=200)


def _loop(tmp_path: Path, session: FakeSession, publisher: FakePublisher, **kw) -> MirrorLoop:
    console = _console()
    return MirrorLoop(
        session=session,
        storage=LibraryStorage(tmp_path / "libraries"),
        dispatcher=PublishDispatcher(publisher, console=console),
        operator="acme",
        console=console,
        **kw,
    )


def test_next_pending_first_match_wins():
    catalog = (
        CatalogEntry("H5P.A", installed=True, can_install=True),
        CatalogEntry("H5P.B", installed=False, can_install=False),
        CatalogEntry("H5P.C", installed=False, can_install=True),
        CatalogEntry("H5P.D", installed=False, can_install=True),
    )
    assert next_pending(catalog).machine_name == "H5P.C"


def test_next_pending_none():
    catalog = (
        CatalogEntry("H5P.A", installed=True, can_install=True),
        CatalogEntry("H5P.B", installed=False, can_install=False),
    )
    assert next_pending(catalog) is None
    assert next_pending(()) is None


def test_one_install_then_stop(tmp_path):
    session = FakeSession(tmp_path / "libraries", {"H5P.Text": (False, True)})
    publisher = FakePublisher()
    loop = _loop(tmp_path, session, publisher)

    outcome = loop.run()

    assert outcome.errors == 0
    assert outcome.published == ["H5P.Text-1.0"]
    assert loop.iterations == 1
    assert loop.state is MirrorState.DONE
    assert session.calls.count("catalog") == 2
    assert [c for c in session.calls if c.startswith("install")] == ["install:H5P.Text"]


def test_nothing_to_install(tmp_path):
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.Text": (True, True), "H5P.Locked": (False, False)},
    )
    publisher = FakePublisher()
    outcome = _loop(tmp_path, session, publisher).run()

    assert outcome.errors == 0
    assert publisher.published == []
    assert session.calls == ["catalog"]


def test_catalog_refetched_after_every_install(tmp_path):
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.A": (False, True), "H5P.B": (False, True), "H5P.C": (True, True)},
    )
    publisher = FakePublisher()
    loop = _loop(tmp_path, session, publisher)
    loop.run()

    installs_and_scans = [c for c in session.calls if c == "catalog" or c.startswith("install")]
    assert installs_and_scans == [
        "catalog", "install:H5P.A",
        "catalog", "install:H5P.B",
        "catalog",
    ]
    assert loop.iterations == 2


def test_cascade_publishes_each_installed_library_in_order(tmp_path):
    cascades = {
        "H5P.Blanks": [
            make_manifest("H5P.Question", 1, 5),
            make_manifest("H5P.JoubelUI", 1, 3),
            make_manifest(
                "H5P.Blanks", 1, 14, 2,
                preloaded_dependencies=[dep("H5P.Question", 1, 5), dep("H5P.JoubelUI", 1, 3)],
            ),
        ],
    }
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.Blanks": (False, True), "H5P.Question": (False, True)},
        cascades=cascades,
    )
    publisher = FakePublisher()
    outcome = _loop(tmp_path, session, publisher).run()

    assert outcome.published == ["H5P.Question-1.5", "H5P.JoubelUI-1.3", "H5P.Blanks-1.14"]
    assert [p.name for p, _ in publisher.published] == outcome.published
    # H5P.Question was installed as a dependency, so it is never selected itself
    assert "install:H5P.Question" not in session.calls

    with open(tmp_path / "libraries" / "H5P.Blanks-1.14" / "package.json") as f:
        data = json.load(f)
    assert data["name"] == "@acme/h5p-blanks"
    assert data["version"] == "1.14.2"
    assert data["dependencies"] == {"@acme/h5p-question": "1.5.x", "@acme/h5p-joubelui": "1.3.x"}


def test_duplicate_cascades_are_not_deduplicated(tmp_path):
    shared = make_manifest("H5P.Question", 1, 5)
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.A": (False, True), "H5P.B": (False, True)},
        cascades={
            "H5P.A": [shared, make_manifest("H5P.A")],
            "H5P.B": [shared, make_manifest("H5P.B")],
        },
    )
    publisher = FakePublisher()
    outcome = _loop(tmp_path, session, publisher).run()
    assert outcome.published.count("H5P.Question-1.5") == 2


def test_publish_failures_counted_and_loop_continues(tmp_path):
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.A": (False, True), "H5P.B": (False, True), "H5P.C": (False, True)},
    )
    publisher = FakePublisher(fail_for={"H5P.A-1.0", "H5P.C-1.0"})
    outcome = _loop(tmp_path, session, publisher).run()

    assert outcome.errors == 2
    assert outcome.failed == ["H5P.A-1.0", "H5P.C-1.0"]
    assert outcome.published == ["H5P.B-1.0"]


def test_install_error_propagates(tmp_path):
    session = FakeSession(
        tmp_path / "libraries",
        {"H5P.A": (False, True), "H5P.B": (False, True)},
        fail_install={"H5P.B"},
    )
    publisher = FakePublisher()
    with pytest.raises(RuntimeError, match="H5P.B"):
        _loop(tmp_path, session, publisher).run()
    assert len(publisher.published) == 1


def test_iteration_cap(tmp_path):
    class StuckSession(FakeSession):
        def install(self, machine_name, user):
            result = super().install(machine_name, user)
            self.catalog[machine_name] = (False, True)
            return result

    session = StuckSession(tmp_path / "libraries", {"H5P.A": (False, True)})
    loop = _loop(tmp_path, session, FakePublisher(), max_iterations=3)
    with pytest.raises(CatalogNotConvergedError) as exc_info:
        loop.run()
    assert exc_info.value.iterations == 3
    assert session.calls.count("install:H5P.A") == 3


def test_progress_lines(tmp_path):
    session = FakeSession(tmp_path / "libraries", {"H5P.Text": (False, True)})
    loop = _loop(tmp_path, session, FakePublisher())
    loop.run()

    output = loop.console.file.getvalue()
    assert "[H5P.Text] Downloading updated/new content type from Hub..." in output
    assert "[H5P.Text-1.0] Publishing new library to NPM registry..." in output
    assert "[H5P.Text-1.0] published!" in output
