import os

import pytest

from leadcrawl.configs import load_settings_file
from leadcrawl.domain import CrawlSettings
from leadcrawl.exceptions import SettingsError

CONFIGS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "configs")


def test_load_example_settings_file():
    settings = load_settings_file(os.path.join(CONFIGS_DIR, "example.yml"))
    assert settings.max_depth == 2
    assert settings.same_domain_only is True
    assert settings.fetch_mode == "headless_chromium"
    assert settings.settle_ms == 1500
    assert "#" in settings.exclude_patterns


def test_file_overrides_base(tmp_path):
    path = tmp_path / "s.yml"
    path.write_text("max_depth: 3\n", encoding="utf-8")
    base = CrawlSettings(output_dir="/tmp/leads")

    settings = load_settings_file(str(path), base=base)

    assert settings.max_depth == 3
    assert settings.output_dir == "/tmp/leads"


def test_no_path_or_missing_file_returns_base(tmp_path):
    base = CrawlSettings(max_depth=2)
    assert load_settings_file(None, base=base) is base
    assert load_settings_file(str(tmp_path / "missing.yml"), base=base) is base


def test_empty_file_returns_base(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_settings_file(str(path)) == CrawlSettings()


def test_malformed_yaml_raises(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("max_depth: [1,\n", encoding="utf-8")
    with pytest.raises(SettingsError) as exc:
        load_settings_file(str(path))
    assert exc.value.source == str(path)
