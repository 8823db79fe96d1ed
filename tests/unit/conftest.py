"""
Unit test configuration.

Config tests must see only what they set with monkeypatch, so the .env reader
inside pydantic-settings is stubbed out and the variables a developer shell
commonly exports are cleared.
"""

import pydantic_settings.sources.providers.dotenv as ps_dotenv
import pytest

_CONFIG_VARS = (
    "ENV",
    "DB_NAME",
    "USE_TRANSACTIONS",
    "API_KEY_PREFIX",
    "TOKEN_BYTES",
    "MAX_CASCADE_SIZE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for name in _CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
