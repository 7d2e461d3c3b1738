"""
Smoke tests that every module of the package imports cleanly.
"""

import importlib

import pytest

MODULES = [
    "prompt_playground",
    "prompt_playground.cli.main",
    "prompt_playground.config.loader",
    "prompt_playground.core.analyzer",
    "prompt_playground.core.improver",
    "prompt_playground.core.language",
    "prompt_playground.core.pricing",
    "prompt_playground.core.templates",
    "prompt_playground.core.token_counter",
    "prompt_playground.sdk",
    "prompt_playground.sdk.client",
    "prompt_playground.sdk.playground",
    "prompt_playground.sdk.session",
    "prompt_playground.storage.db",
    "prompt_playground.storage.models",
    "prompt_playground.storage.repository",
    "prompt_playground.stream",
    "prompt_playground.stream.accumulator",
    "prompt_playground.stream.envelope",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    """Each module imports cleanly."""
    assert importlib.import_module(name) is not None


def test_sdk_exports():
    """The SDK package exposes its public names."""
    import prompt_playground.sdk as sdk
    for name in sdk.__all__:
        assert hasattr(sdk, name), name
