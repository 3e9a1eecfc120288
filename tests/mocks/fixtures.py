"""Test fixtures and factory functions."""

import tempfile
from pathlib import Path

from variantbench.config import load_config
from variantbench.models import RunConfig, ToolArgs
from variantbench.pipeline_core import PipelineContext, Workspace

from .external_tools import HAPPY_SUMMARY


def create_run_config(base_dir: str = None, **overrides) -> RunConfig:
    """Create a RunConfig from the packaged defaults, suitable for tests.

    sudo, the build retry delay and the disk space minimum are disabled so
    that tests neither escalate nor sleep.

    Parameters
    ----------
    base_dir : str, optional
        Root of the run (temp dir if not specified)
    **overrides
        Configuration values to override

    Returns
    -------
    RunConfig
        Validated test configuration
    """
    config = load_config()
    config.update(use_sudo=False, build_retry_delay=0.0, min_free_disk_gb=0.0)
    config.update(overrides)
    return RunConfig.from_config(config, base_dir=base_dir or tempfile.mkdtemp())


def create_test_context(
    run_config: RunConfig = None, tool_args: ToolArgs = None, create_dirs: bool = True
) -> PipelineContext:
    """Create a test PipelineContext with sensible defaults.

    Parameters
    ----------
    run_config : RunConfig, optional
        Run configuration (see :func:`create_run_config`)
    tool_args : ToolArgs, optional
        Optional caller settings (none by default)
    create_dirs : bool
        Create the workspace directories

    Returns
    -------
    PipelineContext
        Configured test context
    """
    run_config = run_config or create_run_config()
    workspace = Workspace(run_config)
    if create_dirs:
        workspace.create()
    return PipelineContext(
        run_config=run_config, tool_args=tool_args or ToolArgs(), workspace=workspace
    )


def create_happy_summary(output_prefix: Path, content: str = HAPPY_SUMMARY) -> Path:
    """Write a hap.py summary CSV for an ``-o`` prefix.

    Parameters
    ----------
    output_prefix : Path
        The prefix hap.py was given
    content : str
        CSV content (a realistic summary by default)

    Returns
    -------
    Path
        Path to the created summary
    """
    path = Path(f"{output_prefix}.summary.csv")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
