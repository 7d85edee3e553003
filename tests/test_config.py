from datetime import timedelta

import pytest

from crpt_client.config import ClientConfig, RateLimit, load_client_config
from crpt_client.errors import ConfigurationError


@pytest.mark.parametrize("amount", [0, -1, -100])
def test_rate_limit_rejects_non_positive_amount(amount):
    with pytest.raises(ConfigurationError):
        RateLimit(timedelta(seconds=1), amount)
    with pytest.raises(ConfigurationError):
        RateLimit.per("second", amount)


def test_rate_limit_units():
    assert RateLimit.per("second", 1).window == timedelta(seconds=1)
    assert RateLimit.per("Minutes", 20).window == timedelta(minutes=1)
    assert RateLimit.per("hour", 5).max_calls == 5
    with pytest.raises(ConfigurationError):
        RateLimit.per("fortnight", 1)


def test_rate_limit_is_immutable():
    rl = RateLimit.per("second", 1)
    with pytest.raises(AttributeError):
        rl.max_calls = 2


def test_client_config_validation():
    with pytest.raises(ConfigurationError):
        ClientConfig(base_url="")
    with pytest.raises(ConfigurationError):
        ClientConfig(connect_timeout_ms=0)
    with pytest.raises(ConfigurationError):
        ClientConfig(rate_limit=5)
    assert ClientConfig(connect_timeout_ms=5000, read_timeout_ms=250).timeout == (5.0, 0.25)


def test_load_client_config_from_env():
    cfg = load_client_config({
        "CRPT_BASE_URL": "https://sandbox.test/api/v3",
        "CRPT_READ_TIMEOUT_MS": "7000",
        "CRPT_RATE_LIMIT_UNIT": "minute",
        "CRPT_RATE_LIMIT_AMOUNT": "30",
    })
    assert cfg.base_url == "https://sandbox.test/api/v3"
    assert cfg.read_timeout_ms == 7000
    assert cfg.connect_timeout_ms == 5000
    assert cfg.rate_limit == RateLimit(timedelta(minutes=1), 30)


def test_load_client_config_without_rate_limit():
    assert load_client_config({}).rate_limit is None


def test_load_client_config_bad_values():
    with pytest.raises(ConfigurationError):
        load_client_config({"CRPT_RATE_LIMIT_AMOUNT": "0"})
    with pytest.raises(ConfigurationError):
        load_client_config({"CRPT_CONNECT_TIMEOUT_MS": "soon"})
