"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from questline.config import QuestlineConfig, load_config
from questline.constants import today_in

REPO_ROOT = Path(__file__).resolve().parent.parent


class TestLoadConfig:
    def test_example_file_loads(self):
        cfg = load_config(REPO_ROOT / "config.yaml.example")
        assert isinstance(cfg, QuestlineConfig)
        assert cfg.app_name == "Questline"
        assert cfg.history_limit == 20
        assert cfg.default_xp_reward == 25
        assert cfg.timezone == "UTC"
        assert cfg.request_timeout == 120.0

    def test_optional_keys_default(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "app_name: Q\n"
            "assistant_url: http://a/chat\n"
            "gateway_url: http://g/v1\n"
            "assistant_model: m\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.history_limit == 20
        assert cfg.timezone == "UTC"
        assert cfg.default_xp_reward == 25

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("app_name: Q\n", encoding="utf-8")
        with pytest.raises(KeyError):
            load_config(path)

    def test_frozen(self, test_config):
        with pytest.raises(AttributeError):
            test_config.history_limit = 5


class TestTodayIn:
    def test_returns_date(self):
        assert isinstance(today_in("UTC"), date)

    def test_unknown_zone(self):
        with pytest.raises(KeyError):
            today_in("Not/A_Zone")


class TestDatabaseUrl:
    def test_reads_environment(self, monkeypatch):
        from questline.database.engine import database_url

        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://u:p@localhost/questline")
        assert database_url() == "postgresql+psycopg://u:p@localhost/questline"

    def test_missing_raises_with_hint(self, monkeypatch):
        from questline.database.engine import create_db_engine, database_url

        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match=".env.example"):
            database_url()
        with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
            create_db_engine()
