"""
End-to-end tests for a full update run against files on disk.
"""
import os
from datetime import datetime

import pytest

from tagbump.MANAGERS.updater import ComposeUpdater
from tagbump.MODELS.policy import Mode
from tagbump.MODELS.report import SkipReason
from tagbump.REPORTERS.console import ConsoleReporter
from tagbump.UTILS import file_ops
from tagbump.exceptions import BackupError, ComposeFileNotFoundError, RegistryError, RewriteError

COMPOSE = """\
version: "3.8"
services:
  studio:
    image: supabase/studio:2025.05.01
  kong:
    image: kong:2.8.1
  db:
    image: "supabase/postgres:15.8.1"
  vector:
    image: 'timberio/vector:0.28.1-alpine'
  realtime:
    image: supabase/realtime:v2.36.20
  realtime-replica:
    image: supabase/realtime:v2.36.20
  minio:
    image: minio/minio
  proxy:
    image: nginx:1.25
  gateway:
    image: foo/realtime:v2.36.20
"""

TAGS = {
    "supabase/studio": ["2025.06.02-rc1", "2025.06.02", "2025.05.01"],
    "supabase/postgres": ["17.4.1", "15.8.1"],
    "timberio/vector": ["0.40.0", "0.40.0-debian", "0.39.0-alpine"],
    "supabase/realtime": ["v2.37.2", "v2.37.1"],
}


class FakeHub:
    def __init__(self, tags):
        self.tags = tags
        self.calls = []

    def list_tags(self, repository):
        self.calls.append(repository)
        if repository not in self.tags:
            raise RegistryError(f"Empty response for {repository}")
        return self.tags[repository]


@pytest.fixture
def compose(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text(COMPOSE)
    return path


def make_updater(path, mode=Mode.CONSERVATIVE, hub=None, now=datetime(2025, 6, 2, 12, 0, 0)):
    return ComposeUpdater(
        compose_file=str(path),
        mode=mode,
        reporter=ConsoleReporter(quiet=True),
        hub=hub or FakeHub(TAGS),
        now=now,
    )


def test_conservative_run(compose):
    hub = FakeHub(TAGS)
    report = make_updater(compose, hub=hub).run()

    text = compose.read_text()
    assert "    image: 'supabase/studio:2025.06.02'\n" in text
    assert "    image: 'timberio/vector:0.39.0-alpine'\n" in text
    assert text.count("    image: 'supabase/realtime:v2.37.2'\n") == 2
    assert "    image: foo/realtime:v2.36.20\n" in text
    assert "    image: kong:2.8.1\n" in text
    assert '    image: "supabase/postgres:15.8.1"\n' in text
    assert "    image: minio/minio\n" in text
    assert "    image: nginx:1.25\n" in text

    assert [str(e.image) for e in report.updated] == [
        "supabase/studio",
        "timberio/vector",
        "supabase/realtime",
    ]
    assert hub.calls.count("supabase/realtime") == 1
    assert "nginx" not in hub.calls

    assert len(report.skipped_upgrades) == 1
    skipped = report.skipped_upgrades[0]
    assert (skipped.repository, skipped.current_tag, skipped.candidate_tag) == (
        "supabase/postgres", "15.8.1", "17.4.1"
    )
    assert [e.image for e in report.unrecognized] == ["nginx", "foo/realtime"]


def test_backup_written_before_edit(compose):
    report = make_updater(compose).run()

    assert report.backup_path == f"{compose}.backup.20250602_120000"
    with open(report.backup_path) as f:
        assert f.read() == COMPOSE


def test_second_run_changes_nothing(compose):
    make_updater(compose, now=datetime(2025, 6, 2, 12, 0, 0)).run()
    after_first = compose.read_bytes()

    report = make_updater(compose, now=datetime(2025, 6, 2, 12, 0, 1)).run()

    assert report.updated_count == 0
    assert compose.read_bytes() == after_first


def test_official_run(compose):
    hub = FakeHub({})
    report = make_updater(compose, mode=Mode.OFFICIAL, hub=hub).run()

    text = compose.read_text()
    assert "    image: 'supabase/postgres:17.4.1.042'\n" in text
    assert "    image: 'kong:2.8.1'\n" not in text
    assert "    image: kong:2.8.1\n" in text
    assert "    image: 'minio/minio:latest'\n" not in text
    assert hub.calls == []
    assert report.skipped_upgrades == []
    assert report.mode == Mode.OFFICIAL


def test_backup_failure_leaves_file_untouched(compose, monkeypatch):
    original = compose.read_bytes()

    def deny(src, dst):
        raise PermissionError("permission denied")

    monkeypatch.setattr(file_ops.shutil, "copyfile", deny)
    hub = FakeHub(TAGS)
    with pytest.raises(BackupError):
        make_updater(compose, hub=hub).run()

    assert compose.read_bytes() == original
    assert hub.calls == []


def test_missing_compose_file(tmp_path):
    with pytest.raises(ComposeFileNotFoundError):
        make_updater(tmp_path / "docker-compose.yml").run()


def test_no_updates_leaves_file_alone(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text("services:\n  db:\n    image: supabase/postgres:15.8.1\n")
    mtime = os.stat(path).st_mtime_ns

    report = make_updater(path, hub=FakeHub({"supabase/postgres": ["15.8.1"]})).run()

    assert report.updated_count == 0
    assert os.stat(path).st_mtime_ns == mtime
    assert report.entries[0].reason is None


def test_lookup_failure_fails_open(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text("services:\n  auth:\n    image: supabase/gotrue:v2.170.0\n")

    report = make_updater(path, hub=FakeHub({})).run()

    assert report.entries[0].reason == SkipReason.LOOKUP_FAILED
    assert report.entries[0].new_tag == "v2.170.0"
    assert path.read_text() == "services:\n  auth:\n    image: supabase/gotrue:v2.170.0\n"


def test_crlf_file_keeps_line_endings(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_bytes(b"services:\r\n  rt:\r\n    image: supabase/realtime:v2.36.20\r\n")

    make_updater(path).run()

    assert path.read_bytes() == b"services:\r\n  rt:\r\n    image: 'supabase/realtime:v2.37.2'\r\n"


def test_rewrite_breaking_yaml_is_refused(compose, monkeypatch):
    from tagbump.MANAGERS import updater as updater_module

    original = compose.read_text()
    monkeypatch.setattr(
        updater_module, "apply_plan", lambda text, plan: (text + "  : [broken\n", set(plan))
    )

    with pytest.raises(RewriteError):
        make_updater(compose).run()

    assert compose.read_text() == original


def test_progress_is_reported(compose):
    reporter = ConsoleReporter(quiet=True)
    updater = ComposeUpdater(
        compose_file=str(compose), reporter=reporter, hub=FakeHub(TAGS),
        now=datetime(2025, 6, 2, 12, 0, 0),
    )
    updater.run()

    infos = [text for level, text in reporter.messages if level == "info"]
    assert "Checking supabase/realtime:v2.36.20..." in infos
    assert "Safe update available: supabase/studio 2025.05.01 → 2025.06.02" in infos
    assert "Already up to date: minio/minio:latest" in infos
    assert "Unknown image: nginx, skipping..." in reporter.warnings()


def test_official_run_rewrites_untagged_images(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text(
        "services:\n"
        "  kong:\n"
        "    image: kong\n"
        "  db:\n"
        "    image: supabase/postgres\n"
    )

    report = make_updater(path, mode=Mode.OFFICIAL, hub=FakeHub({})).run()

    assert path.read_text() == (
        "services:\n"
        "  kong:\n"
        "    image: 'kong:2.8.1'\n"
        "  db:\n"
        "    image: 'supabase/postgres:17.4.1.042'\n"
    )
    assert [(e.image, e.old_tag, e.new_tag) for e in report.updated] == [
        ("kong", "latest", "2.8.1"),
        ("supabase/postgres", "latest", "17.4.1.042"),
    ]


def test_only_replaced_entries_are_reported(compose, monkeypatch):
    from tagbump.MANAGERS import updater as updater_module

    original = compose.read_text()
    monkeypatch.setattr(updater_module, "apply_plan", lambda text, plan: (text, set()))

    report = make_updater(compose).run()

    assert report.updated_count == 0
    assert compose.read_text() == original
    assert any(e.changed for e in report.entries)
