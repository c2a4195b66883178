"""
Tests for the `badgeforge` CLI entry point.
"""

import json

import pytest

from badgeforge import app
from badgeforge.core import settings

TEMPLATE = {
    "id": "cli",
    "name": "CLI Badge",
    "width": 200,
    "height": 60,
    "layers": [{"id": "t", "type": "text", "text": "Hello", "position": ["50%", "50%"]}],
}


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "settings_dir", lambda: tmp_path / "home")
    (tmp_path / "t.json").write_text(json.dumps(TEMPLATE), encoding="utf-8")
    return tmp_path


def run(workdir, *args):
    return app.main(["--log-dir", str(workdir / "logs"), *args])


def test_export_svg(workdir, capsys):
    out = workdir / "out"
    out.mkdir()
    assert run(workdir, "export", "t.json", "--format", "svg", "--out", str(out), "--no-embed-fonts") == 0
    files = list(out.glob("cli-badge-*.svg"))
    assert len(files) == 1
    assert "<text" in files[0].read_text(encoding="utf-8")
    assert str(files[0]) in capsys.readouterr().out


def test_export_with_overrides(workdir):
    (workdir / "o.json").write_text(json.dumps({"t": {"text": "Bye"}}), encoding="utf-8")
    target = workdir / "badge.svg"
    code = run(workdir, "export", "t.json", "--overrides", "o.json", "--format", "svg", "--out", str(target), "--no-embed-fonts")
    assert code == 0
    assert "Bye" in target.read_text(encoding="utf-8")


def test_missing_dimensions_exit_code(workdir):
    (workdir / "r.json").write_text(json.dumps({**TEMPLATE, "width": None, "height": None}), encoding="utf-8")
    assert run(workdir, "export", "r.json", "--format", "png", "--no-embed-fonts") == app.EXIT_MISSING_DIMENSION


def test_bad_template_exit_code(workdir):
    assert run(workdir, "export", "missing.json", "--format", "svg") == app.EXIT_ERROR


def test_save_defaults(workdir):
    run(workdir, "export", "t.json", "--format", "svg", "--scale", "4", "--out", str(workdir), "--save-defaults", "--no-embed-fonts")
    prefs = settings.AppSettings.load()
    assert prefs.export_format == "svg"
    assert prefs.export_scale == 4
    assert prefs.embed_fonts is False
