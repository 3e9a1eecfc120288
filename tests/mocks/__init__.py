"""Test mocks and fixtures for variantbench tests."""

from .external_tools import FakeAria2c, FakeContainerRuntime
from .fixtures import create_happy_summary, create_run_config, create_test_context

__all__ = [
    "FakeAria2c",
    "FakeContainerRuntime",
    "create_happy_summary",
    "create_run_config",
    "create_test_context",
]
