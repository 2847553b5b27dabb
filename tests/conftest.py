"""Global pytest fixtures for deterministic test behavior."""

import pytest

from inlayhints.config import ENV_PREFIX, HintConfig


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep the developer's environment and working directory out of tests.

    ``load_config`` reads ``INLAYHINTS_*`` variables and ``./inlayhints.json``;
    both are cleared so every test starts from the built-in defaults.
    """
    import os

    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def type_hints_only():
    return HintConfig(type_hints=True, parameter_hints=False, chaining_hints=False)


@pytest.fixture
def param_hints_only():
    return HintConfig(type_hints=False, parameter_hints=True, chaining_hints=False)


@pytest.fixture
def chaining_hints_only():
    return HintConfig(type_hints=False, parameter_hints=False, chaining_hints=True)
