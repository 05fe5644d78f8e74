import pytest

from relaunch.config import ConfigurationError, env_float, env_int, env_list, env_str


def test_env_str_returns_default_for_missing_and_blank(monkeypatch):
    monkeypatch.delenv("RELAUNCH_TEST_VALUE", raising=False)
    assert env_str("RELAUNCH_TEST_VALUE", "fallback") == "fallback"

    monkeypatch.setenv("RELAUNCH_TEST_VALUE", "   ")
    assert env_str("RELAUNCH_TEST_VALUE", "fallback") == "fallback"

    monkeypatch.setenv("RELAUNCH_TEST_VALUE", " value ")
    assert env_str("RELAUNCH_TEST_VALUE") == "value"


def test_env_str_required_raises(monkeypatch):
    monkeypatch.delenv("RELAUNCH_TEST_VALUE", raising=False)
    with pytest.raises(ConfigurationError):
        env_str("RELAUNCH_TEST_VALUE", required=True)


def test_env_int_and_float_coerce(monkeypatch):
    monkeypatch.setenv("RELAUNCH_TEST_INT", "42")
    monkeypatch.setenv("RELAUNCH_TEST_FLOAT", "1.5")
    assert env_int("RELAUNCH_TEST_INT") == 42
    assert env_float("RELAUNCH_TEST_FLOAT") == 1.5


@pytest.mark.parametrize("getter", [env_int, env_float])
def test_numeric_getters_reject_garbage(monkeypatch, getter):
    monkeypatch.setenv("RELAUNCH_TEST_NUM", "lots")
    with pytest.raises(ConfigurationError, match="RELAUNCH_TEST_NUM"):
        getter("RELAUNCH_TEST_NUM")


def test_env_list_strips_and_deduplicates(monkeypatch):
    monkeypatch.setenv("RELAUNCH_TEST_LIST", ".py, .go,,.py , .rs")
    assert env_list("RELAUNCH_TEST_LIST") == (".py", ".go", ".rs")


def test_env_list_default(monkeypatch):
    monkeypatch.delenv("RELAUNCH_TEST_LIST", raising=False)
    assert env_list("RELAUNCH_TEST_LIST") is None
    assert env_list("RELAUNCH_TEST_LIST", or_value=[".py"]) == (".py",)
