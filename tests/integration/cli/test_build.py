"""Integration tests for the CLI commands (build, render, init)"""

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


@pytest.fixture(name="project")
def project_fixture(tmp_path, monkeypatch):
    """A project directory with routes/ and a local database, used as cwd."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MDSITE_DB_URL", f"sqlite:///{tmp_path}/test.db")
    monkeypatch.setenv("MDSITE_OPTIMIZE_IMAGES", "false")
    routes = tmp_path / "routes"
    routes.mkdir()
    (routes / "index.md").write_text("---\ntitle: Home\n---\n\n# Hello\n\nWorld\n")
    (routes / "about.md").write_text("About **us**.\n")
    return tmp_path


def test_build_cmd_renders_site(project):
    """build writes one HTML file per markdown file and prints a summary."""
    result = CliRunner().invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert (project / "dist" / "index.html").is_file()
    assert "<strong>us</strong>" in (project / "dist" / "about.html").read_text()
    assert "2 succeeded, 0 failed" in result.output


def test_build_cmd_reports_failed_document(project):
    """A failed document is counted in the summary without failing the command."""
    (project / "routes" / "bad.md").write_bytes(b"\xff\xfe broken")
    result = CliRunner().invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert "2 succeeded, 1 failed" in result.output
    assert not (project / "dist" / "bad.html").exists()


def test_build_cmd_strict_exits_nonzero(project):
    (project / "routes" / "bad.md").write_bytes(b"\xff\xfe broken")
    result = CliRunner().invoke(app, ["build", "--strict"])
    assert result.exit_code == 1


def test_build_cmd_custom_dirs(project):
    (project / "pages").mkdir()
    (project / "pages" / "x.md").write_text("x")
    result = CliRunner().invoke(app, ["build", "--content-dir", "pages", "--out-dir", "public"])
    assert result.exit_code == 0, result.output
    assert (project / "public" / "x.html").is_file()


def test_build_cmd_missing_content_dir(project):
    result = CliRunner().invoke(app, ["build", "--content-dir", "nowhere"])
    assert result.exit_code == 1
    assert "Content directory not found" in result.output


def test_build_cmd_invalid_config(project):
    (project / "config.yaml").write_text("key: [unclosed\n")
    result = CliRunner().invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Invalid config.yaml" in result.output


def test_build_cmd_incremental(project):
    """A second incremental build skips unchanged documents."""
    runner = CliRunner()
    runner.invoke(app, ["build", "--incremental"])
    result = runner.invoke(app, ["build", "--incremental"])
    assert result.exit_code == 0, result.output
    assert "2 unchanged" in result.output


def test_render_cmd_prints_body(project):
    result = CliRunner().invoke(app, ["render", "routes/index.md"])
    assert result.exit_code == 0, result.output
    assert '<h1 id="hello">' in result.output
    assert "<!DOCTYPE html>" not in result.output


def test_render_cmd_missing_file(project):
    result = CliRunner().invoke(app, ["render", "routes/nope.md"])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_serve_cmd_requires_build(project):
    result = CliRunner().invoke(app, ["serve"])
    assert result.exit_code == 1
    assert "mdsite build" in result.output


def test_init_cmd(project):
    result = CliRunner().invoke(app, ["init", "--reset"])
    assert result.exit_code == 0, result.output
    assert "Existing data cleared." in result.output
    assert (project / "test.db").exists()
