"""
Root conftest.py — isolates tests from the developer's environment.

Fixtures:
  clean_env (autouse)   — clears NO_COLOR / COLORFGBG / ORBITAL_* so theme
                          and config detection start from defaults
  restore_loggers (autouse) — undoes handler changes made by cli.setup_logging
"""
from __future__ import annotations

import logging

import pytest

_ENV_VARS = ("NO_COLOR", "COLORFGBG", "ORBITAL_THEME", "ORBITAL_TUI_LOG")
_PACKAGE_LOGGERS = ("orbital_dashboard", "orbital_tui")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_loggers():
    saved = {}
    for name in _PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (threads with real timing)",
    )
