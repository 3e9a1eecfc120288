"""Shared pytest fixtures for all test modules."""

import pytest

from tests.mocks.fixtures import create_run_config, create_test_context
from variantbench.models import ToolArgs


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast tests of a single module")
    config.addinivalue_line("markers", "integration: tests of the full pipeline with mocked tools")


@pytest.fixture
def run_config(tmp_path):
    """Run configuration rooted in a temporary directory."""
    return create_run_config(base_dir=str(tmp_path / "case-study"))


@pytest.fixture
def tool_args():
    """Caller settings with every optional value given."""
    return ToolArgs(
        customized_model="gs://bucket/model",
        make_examples_args="min_mapping_quality=1",
        call_variants_args="batch_size=32",
        postprocess_variants_args="qual_filter=1",
        regions="chr20",
    )


@pytest.fixture
def context(run_config):
    """Pipeline context with the workspace directories created."""
    return create_test_context(run_config)
