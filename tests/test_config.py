"""Tests for configuration loading."""

import json
import logging

import pytest

from config import TimerConfig, load_config


def test_defaults():
    cfg = TimerConfig()
    assert cfg.total_houses == 12
    assert cfg.initial_duration_seconds == 2100
    assert cfg.preview_alert_seconds == 10
    assert cfg.overtime_alert_offsets == [5, 10]
    assert cfg.negative_ceiling_seconds == 600
    assert cfg.auto_stop_at_ceiling is False
    assert cfg.tick_interval_ms == 1000


def test_from_dict_camel_case_keys():
    cfg = TimerConfig.from_dict({
        "totalEntities": 4,
        "initialDurationSeconds": 90,
        "previewAlertSeconds": 15,
        "overtimeAlertOffsets": [30, 5, 5],
        "negativeCeilingSeconds": -120,
        "autoStopAtCeiling": True,
    })
    assert cfg.total_houses == 4
    assert cfg.initial_duration_seconds == 90
    assert cfg.preview_alert_seconds == 15
    assert cfg.overtime_alert_offsets == [5, 30]
    assert cfg.negative_ceiling_seconds == 120
    assert cfg.auto_stop_at_ceiling is True


def test_unknown_keys_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        cfg = TimerConfig.from_dict({"totalEntities": 2, "colour": "red"})
    assert cfg.total_houses == 2
    assert "colour" in caplog.text


@pytest.mark.parametrize("options", [
    {"total_houses": 0},
    {"initial_duration_seconds": -1},
    {"initial_duration_seconds": True},
    {"preview_alert_seconds": -3},
    {"overtime_alert_offsets": [5, 0]},
    {"overtime_alert_offsets": ["5"]},
    {"negative_ceiling_seconds": 1.5},
    {"auto_stop_at_ceiling": "yes"},
])
def test_invalid_values_rejected(options):
    with pytest.raises(ValueError):
        TimerConfig(**options)


def test_house_name_fallback():
    cfg = TimerConfig(total_houses=14)
    assert cfg.house_name(0) == "Colinas"
    assert cfg.house_name(9) == "Sprunk"
    assert cfg.house_name(12) == "Casa 12"


def test_load_config_missing_file(tmp_path):
    assert load_config(tmp_path / "config.json") == TimerConfig()


def test_load_config_reads_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"totalEntities": 3, "houseNames": ["A", "B"]}))
    cfg = load_config(path)
    assert cfg.total_houses == 3
    assert cfg.house_name(1) == "B"
    assert cfg.house_name(2) == "Casa 2"


@pytest.mark.parametrize("content", ["{broken", "[]", '{"totalEntities": -4}', '{"overtimeAlertOffsets": 5}'])
def test_load_config_invalid_falls_back_to_defaults(tmp_path, caplog, content):
    path = tmp_path / "config.json"
    path.write_text(content)
    with caplog.at_level(logging.WARNING):
        cfg = load_config(path)
    assert cfg == TimerConfig()
    assert "using defaults" in caplog.text


def test_house_cities():
    cfg = TimerConfig.from_dict({"houseCities": ["Norte", None, "Sur"]})
    assert cfg.house_city(0) == "Norte"
    assert cfg.house_city(1) == ""
    assert cfg.house_city(2) == "Sur"
    assert cfg.house_city(11) == ""


def test_house_cities_default_unassigned():
    cfg = TimerConfig()
    assert all(cfg.house_city(i) == "" for i in range(cfg.total_houses))
