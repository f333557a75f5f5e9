from __future__ import annotations

import os

import pytest

# Live credentials must never leak into an offline test run.
_ISOLATED_ENV_VARS = (
    "APCA_API_KEY_ID",
    "APCA_API_SECRET_KEY",
    "APCA_API_BASE_URL",
)

_PREVIOUS_ENV: dict[str, str | None] = {}


def pytest_configure(config: pytest.Config) -> None:
    global _PREVIOUS_ENV
    _PREVIOUS_ENV = {key: os.environ.get(key) for key in _ISOLATED_ENV_VARS}
    for key in _ISOLATED_ENV_VARS:
        os.environ.pop(key, None)


def pytest_unconfigure(config: pytest.Config) -> None:
    for key, value in _PREVIOUS_ENV.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture(autouse=True)
def _no_live_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
