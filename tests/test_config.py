import logging

import pytest
from pydantic import ValidationError

from tracker_proxy.config import Settings


def test_defaults(monkeypatch):
    for name in ("PORT", "SEND_ACK", "PROD", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.PORT == 5001
    assert settings.SEND_ACK is True
    assert settings.HOST == "0.0.0.0"
    assert settings.CONNECTION_TIMEOUT == 120
    assert settings.KEEPALIVE_INTERVAL == 30
    assert settings.get_log_level() == logging.DEBUG


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "6001")
    monkeypatch.setenv("SEND_ACK", "false")
    monkeypatch.setenv("PROD", "true")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.PORT == 6001
    assert settings.SEND_ACK is False
    assert settings.get_log_level() == logging.INFO


def test_explicit_log_level():
    assert Settings(_env_file=None, LOG_LEVEL="warning").get_log_level() == logging.WARNING


@pytest.mark.parametrize("value", ["VERBOSE", "trace", "10"])
def test_unknown_log_level_rejected(value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOG_LEVEL=value)


def test_blank_log_level_falls_back_to_default():
    assert Settings(_env_file=None, LOG_LEVEL=" ", PROD=True).get_log_level() == logging.INFO


@pytest.mark.parametrize("value, expected", [
    ("true", True),
    ("TRUE", True),
    (" True ", True),
    ("false", False),
    ("1", False),
    ("yes", False),
    ("garbage", False),
    ("", False),
])
def test_send_ack_only_true_enables(monkeypatch, value, expected):
    monkeypatch.setenv("SEND_ACK", value)
    assert Settings(_env_file=None).SEND_ACK is expected
