"""Tests for the fluent configuration builder."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

import pytest

from layerconf.builder import ConfigBuilder
from layerconf.core.contracts import Priority
from layerconf.core.errors import MissingEnvironmentError
from layerconf.core.reload import SchedulerState
from layerconf.core.store import ConfigStore

from conftest import ListenerProbe, write_text


def test_builder_applies_priority_bands(
    monkeypatch: pytest.MonkeyPatch, sample_dotenv: Path, sample_yaml: Path
) -> None:
    monkeypatch.setenv("LCTEST_SERVER_PORT", "9090")
    monkeypatch.setenv("LCTEST_DB_PORT", "1111")
    store = (
        ConfigBuilder()
        .from_map({"server": {"host": "example.org"}}, "overrides")
        .from_file(sample_yaml)
        .from_dotenv(sample_dotenv)
        .from_env("LCTEST_")
        .with_defaults({"server": {"host": "localhost", "port": 80, "workers": 2}})
        .build()
    )
    with store:
        assert store.get("server.host").as_string() == "example.org"
        assert store.get("server.port").as_int() == 8080
        assert store.get("server.workers").as_int() == 2
        assert store.get("db.port").as_int() == 5432
        assert store.get("features").as_string_list() == ["search", "export"]
        assert [entry["priority"] for entry in store.describe_sources()] == [
            Priority.DEFAULTS,
            Priority.ENV,
            Priority.DOTENV,
            Priority.FILE,
            Priority.MAP,
        ]


def test_env_overrides_defaults_on_build(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPX_SERVER_PORT", "9090")
    with ConfigBuilder().from_env("APPX_").with_defaults({"server": {"port": 80}}).build() as store:
        assert store.get("server.port").as_int() == 9090


def test_build_fails_fast_on_missing_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LAYERCONF_REQUIRED_TOKEN", raising=False)
    builder = ConfigBuilder().with_defaults({"a": 1}).require_env("LAYERCONF_REQUIRED_TOKEN")
    with pytest.raises(MissingEnvironmentError) as excinfo:
        builder.build()
    assert excinfo.value.missing == ("LAYERCONF_REQUIRED_TOKEN",)


def test_build_tolerates_broken_optional_source(tmp_path: Path) -> None:
    broken = write_text(tmp_path / "broken.env", "NOT A VALID LINE")
    with ConfigBuilder().with_defaults({"a": 1}).from_dotenv(broken).build() as store:
        assert store.all_settings() == {"a": 1}


def test_validation_failures_are_logged_not_rolled_back(
    caplog: pytest.LogCaptureFixture, probe: ListenerProbe
) -> None:
    def validate(config: ConfigStore) -> None:
        if config.get("server.port").as_int() < 1024:
            raise ValueError("server.port must be >= 1024")

    caplog.set_level(logging.WARNING, logger="layerconf")
    store = (
        ConfigBuilder()
        .with_defaults({"server": {"port": 8080}})
        .with_validation(validate)
        .with_on_change(probe)
        .build()
    )
    with store:
        assert "validation error" not in caplog.text
        handle = store.set("server.port", 80)
        assert handle.wait(timeout=2)
        assert store.get("server.port").as_int() == 80
        assert probe.calls == [("server.port", 80)]
    assert "server.port must be >= 1024" in caplog.text


def test_auto_reload_picks_up_file_changes(tmp_path: Path, probe: ListenerProbe) -> None:
    path = write_text(tmp_path / "app.env", "FEATURE_ENABLED=false")
    store = (
        ConfigBuilder()
        .from_dotenv(path)
        .with_on_change(probe)
        .with_auto_reload(dt.timedelta(milliseconds=20))
        .build()
    )
    with store:
        assert store.scheduler is not None
        assert store.scheduler.state is SchedulerState.RUNNING
        assert store.get("feature.enabled").as_bool() is False
        write_text(tmp_path / "next.env", "FEATURE_ENABLED=true").replace(path)
        assert probe.wait_for(1)
        assert probe.calls[0] == ("feature.enabled", True)
    assert store.scheduler.state is SchedulerState.STOPPED


def test_auto_reload_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ConfigBuilder().with_auto_reload(0)


def test_call_order_does_not_decide_conflicts() -> None:
    store = ConfigBuilder().from_map({"x": "explicit"}).with_defaults({"x": "default"}).build()
    with store:
        assert store.get("x").as_string() == "explicit"
        assert store.load_all() == {}
