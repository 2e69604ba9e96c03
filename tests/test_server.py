import pytest

import teaser.server as server_module
from teaser.errors import BuildError
from teaser.server import PreviewServer


def test_port_from_config_or_override(tmp_path, write_file):
    assert PreviewServer(tmp_path).port == 4000
    write_file(tmp_path / "_config.yml", "port: 8123\n")
    assert PreviewServer(tmp_path).port == 8123
    assert PreviewServer(tmp_path, port=9000).port == 9000


def test_is_ignored(tmp_path):
    server = PreviewServer(tmp_path)
    assert server.is_ignored(tmp_path / "_site" / "index.html")
    assert server.is_ignored(tmp_path / "_site.staging" / "index.html")
    assert server.is_ignored(tmp_path / "node_modules" / "x.js")
    assert server.is_ignored(tmp_path / ".git" / "HEAD")
    assert not server.is_ignored(tmp_path / "_posts" / "2017-04-13-hello.md")


@pytest.fixture
def fake_build(monkeypatch):
    calls = []

    def build_site(project_root, include_drafts=False, root_url=None, output_dir_override=None):
        calls.append((include_drafts, root_url, output_dir_override))
        output_dir_override.mkdir(parents=True)
        (output_dir_override / "index.html").write_text("new")

    monkeypatch.setattr(server_module, "build_site", build_site)
    return calls


def test_rebuild_swaps_in_staging(tmp_path, fake_build):
    server = PreviewServer(tmp_path)
    (tmp_path / "_site").mkdir()
    (tmp_path / "_site" / "stale.html").write_text("old")

    assert server.rebuild(include_drafts=True, force=True)
    assert fake_build == [(True, "", tmp_path / "_site.staging")]
    assert (tmp_path / "_site" / "index.html").read_text() == "new"
    assert not (tmp_path / "_site" / "stale.html").exists()
    assert not (tmp_path / "_site.staging").exists()


def test_rebuild_is_debounced(tmp_path, fake_build):
    server = PreviewServer(tmp_path)
    server._debounce_seconds = 60
    assert server.rebuild(False, force=True)
    assert not server.rebuild(False)
    assert not server.rebuild(False)
    assert len(fake_build) == 1
    server.stop()
    server._trailing.join(timeout=5)
    assert len(fake_build) == 1


def test_debounced_change_gets_a_trailing_rebuild(tmp_path, fake_build, capsys):
    server = PreviewServer(tmp_path)
    server._debounce_seconds = 0.5
    assert server.rebuild(False, force=True)
    assert not server.rebuild(False)
    trailing = server._trailing
    trailing.join(timeout=5)
    assert len(fake_build) == 2
    assert "Change detected; site rebuilt." in capsys.readouterr().out


def test_change_during_rebuild_is_not_lost(tmp_path, fake_build):
    server = PreviewServer(tmp_path)
    server._debounce_seconds = 0.5
    server._lock.acquire()
    try:
        assert not server.rebuild(True, force=True)
        trailing = server._trailing
    finally:
        server._lock.release()
    trailing.join(timeout=5)
    assert fake_build == [(True, "", tmp_path / "_site.staging")]


def test_failed_rebuild_keeps_previous_output(tmp_path, monkeypatch, capsys):
    def failing_build(project_root, **kwargs):
        raise BuildError(project_root / "index.html", "boom")

    monkeypatch.setattr(server_module, "build_site", failing_build)
    server = PreviewServer(tmp_path)
    (tmp_path / "_site").mkdir()
    (tmp_path / "_site" / "index.html").write_text("old")

    assert not server.rebuild(False, force=True)
    assert (tmp_path / "_site" / "index.html").read_text() == "old"
    assert "Build failed:" in capsys.readouterr().out
