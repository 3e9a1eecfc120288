"""
Pipeline infrastructure for variantbench.

This package provides the core abstractions for the stage-based pipeline:
- PipelineContext: Container for all pipeline state and data
- Stage: Abstract base class for all pipeline components
- Workspace: Directory layout of a benchmark run
- PipelineRunner: Orchestrates sequential, dependency-ordered stage execution
"""

from .context import PipelineContext
from .runner import PipelineRunner
from .stage import Stage
from .workspace import Workspace

__all__ = [
    "PipelineContext",
    "Stage",
    "Workspace",
    "PipelineRunner",
]
