"""Tests for relay settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from devrelay.config import RelaySettings


class TestDefaults:
    def test_defaults(self):
        s = RelaySettings()
        assert s.host == "0.0.0.0"
        assert s.port == 3000
        assert s.timezone == "Asia/Dhaka"
        assert s.session_queue_size == 100
        assert s.db_path == Path("data") / "devrelay.db"
        assert str(s.tz) == "Asia/Dhaka"


class TestFromEnv:
    def test_empty_env_uses_defaults(self):
        assert RelaySettings.from_env({}) == RelaySettings()

    def test_overrides(self):
        s = RelaySettings.from_env({
            "RELAY_HOST": "127.0.0.1",
            "RELAY_PORT": "8080",
            "RELAY_DATA_DIR": "/var/lib/devrelay",
            "RELAY_TIMEZONE": "Europe/Berlin",
            "RELAY_STATIC_DIR": "/srv/dashboard",
            "RELAY_SESSION_QUEUE": "10",
            "RELAY_LOG_LEVEL": "debug",
        })
        assert s.host == "127.0.0.1"
        assert s.port == 8080
        assert s.db_path == Path("/var/lib/devrelay/devrelay.db")
        assert s.static_dir == Path("/srv/dashboard")
        assert s.session_queue_size == 10
        assert s.log_level == "DEBUG"

    def test_plain_port_variable(self):
        assert RelaySettings.from_env({"PORT": "5000"}).port == 5000

    def test_relay_port_wins_over_port(self):
        assert RelaySettings.from_env({"PORT": "5000", "RELAY_PORT": "6000"}).port == 6000

    def test_bad_port(self):
        with pytest.raises(ValueError, match="RELAY_PORT"):
            RelaySettings.from_env({"RELAY_PORT": "eighty"})

    def test_bad_timezone(self):
        with pytest.raises(ValueError, match="Unknown time zone"):
            RelaySettings.from_env({"RELAY_TIMEZONE": "Mars/Olympus_Mons"})

    def test_bad_queue_size(self):
        with pytest.raises(ValueError):
            RelaySettings(session_queue_size=0)


class TestHistorySwitch:
    def test_history_on_by_default(self):
        assert RelaySettings.from_env({}).history is True

    @pytest.mark.parametrize("raw", ["off", "OFF", "0", "false", "no"])
    def test_history_off(self, raw):
        assert RelaySettings.from_env({"RELAY_HISTORY": raw}).history is False

    @pytest.mark.parametrize("raw", ["on", "1", "true", "yes"])
    def test_history_on(self, raw):
        assert RelaySettings.from_env({"RELAY_HISTORY": raw}).history is True

    def test_bad_history_value(self):
        with pytest.raises(ValueError, match="RELAY_HISTORY"):
            RelaySettings.from_env({"RELAY_HISTORY": "sometimes"})
