"""
Tests for project settings (badgeforge_settings.json -> BF_* env), policies and user prefs.
"""

import json
import os

import pytest

from badgeforge.core import settings
from badgeforge.core.policy import ExportPolicy, FitPolicy, ZoomPolicy
from badgeforge.core.settings import AppSettings, apply_project_settings, find_project_settings_path


@pytest.fixture
def home(tmp_path, monkeypatch):
    d = tmp_path / "home"
    monkeypatch.setattr(settings, "settings_dir", lambda: d)
    return d


def write_project(path, data):
    (path / "badgeforge_settings.json").write_text(json.dumps(data), encoding="utf-8")


class TestPolicies:
    def test_defaults(self):
        z = ZoomPolicy.from_env()
        assert (z.min_zoom, z.max_zoom) == (0.1, 50.0)
        assert FitPolicy.from_env().margin_ratio == 0.9
        e = ExportPolicy.from_env()
        assert e.clip_mode == "clip"
        assert e.embed_fonts is True
        assert e.raster_scales == (1, 2, 4, 8)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BF_ZOOM_MAX", "20")
        monkeypatch.setenv("BF_CLAMP_PAN", "yes")
        monkeypatch.setenv("BF_CLIP_MODE", "MASK")
        monkeypatch.setenv("BF_EMBED_FONTS", "0")
        z = ZoomPolicy.from_env()
        assert z.max_zoom == 20
        assert z.clamp_pan is True
        e = ExportPolicy.from_env()
        assert e.clip_mode == "mask"
        assert e.embed_fonts is False

    def test_invalid_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("BF_ZOOM_MIN", "abc")
        monkeypatch.setenv("BF_FIT_MARGIN", "5")
        monkeypatch.setenv("BF_CLIP_MODE", "blur")
        monkeypatch.setenv("BF_FONT_CSS_URL", "https://no-placeholder")
        assert ZoomPolicy.from_env().min_zoom == 0.1
        assert FitPolicy.from_env().margin_ratio == 1.0
        e = ExportPolicy.from_env()
        assert e.clip_mode == "clip"
        assert "{family}" in e.font_css_url

    def test_inverted_bounds_reset(self, monkeypatch):
        monkeypatch.setenv("BF_ZOOM_MIN", "5")
        monkeypatch.setenv("BF_ZOOM_MAX", "1")
        z = ZoomPolicy.from_env()
        assert (z.min_zoom, z.max_zoom) == (0.1, 50.0)


class TestProjectSettings:
    def test_found_walking_up(self, tmp_path):
        write_project(tmp_path, {})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_settings_path(nested) == (tmp_path / "badgeforge_settings.json").resolve()

    def test_applied_to_env(self, tmp_path):
        write_project(
            tmp_path,
            {
                "viewport": {"zoom": {"max": 10}, "fit": {"margin_ratio": 0.8}, "clamp_pan": True},
                "export": {"clip_mode": "mask", "fonts": {"embed": False, "timeout_s": 3}},
            },
        )
        applied = apply_project_settings(tmp_path)
        assert applied["viewport.zoom.max"] == 10
        assert os.environ["BF_ZOOM_MAX"] == "10.0"
        assert os.environ["BF_CLIP_MODE"] == "mask"
        assert ZoomPolicy.from_env().clamp_pan is True
        assert FitPolicy.from_env().margin_ratio == 0.8
        assert ExportPolicy.from_env().font_timeout_s == 3

    def test_out_of_range_ignored(self, tmp_path):
        write_project(tmp_path, {"viewport": {"zoom": {"max": 100000}}})
        assert apply_project_settings(tmp_path) == {}
        assert "BF_ZOOM_MAX" not in os.environ

    def test_env_wins_by_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BF_CLIP_MODE", "clip")
        write_project(tmp_path, {"export": {"clip_mode": "mask"}})
        apply_project_settings(tmp_path)
        assert os.environ["BF_CLIP_MODE"] == "clip"
        apply_project_settings(tmp_path, prefer_env=False)
        assert os.environ["BF_CLIP_MODE"] == "mask"

    def test_invalid_json(self, tmp_path):
        (tmp_path / "badgeforge_settings.json").write_text("{", encoding="utf-8")
        assert apply_project_settings(tmp_path) == {}


class TestAppSettings:
    def test_defaults_without_file(self, home):
        s = AppSettings.load()
        assert (s.export_format, s.export_scale, s.embed_fonts) == ("png", 2, True)

    def test_save_and_load(self, home):
        AppSettings(export_format="pdf", export_scale=4, output_dir="/tmp/out", embed_fonts=False).save()
        s = AppSettings.load()
        assert (s.export_format, s.export_scale, s.output_dir, s.embed_fonts) == ("pdf", 4, "/tmp/out", False)

    def test_bad_values_are_coerced(self, home):
        home.mkdir(parents=True)
        (home / "settings.json").write_text(json.dumps({"export_format": "gif", "export_scale": 3}), encoding="utf-8")
        s = AppSettings.load()
        assert (s.export_format, s.export_scale) == ("png", 2)
