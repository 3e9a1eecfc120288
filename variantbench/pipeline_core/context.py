"""
PipelineContext - the mutable state handed from stage to stage.

Configuration sits at the top and is not modified after the run starts.
Everything below it is filled in by stages as the run advances.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set, TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from ..models import ComposedArgs, ExecutionRecord, RunConfig, ToolArgs
    from .workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """State of one benchmark run.

    Attributes
    ----------
    run_config : RunConfig
        Settings fixed for the whole run
    tool_args : ToolArgs
        Caller customisations given on the command line
    workspace : Workspace
        Input, output and log directories
    image : str, optional
        DeepVariant image reference, set by image provisioning
    composed_args : ComposedArgs, optional
        Extra caller flags and hap.py arguments, set by argument composition
    staged_files : list of Path
        Files placed into the input directory by this run
    records : dict
        ExecutionRecord of each external tool run, keyed by record name
    benchmark_summary : pandas.DataFrame, optional
        hap.py metrics, set by the summary stage
    report_paths : dict
        Report kind to written file
    """

    run_config: "RunConfig"
    tool_args: "ToolArgs"
    workspace: "Workspace"
    start_time: datetime = field(default_factory=datetime.now)

    completed_stages: Set[str] = field(default_factory=set)

    image: Optional[str] = None
    composed_args: Optional["ComposedArgs"] = None
    staged_files: List[Path] = field(default_factory=list)
    records: Dict[str, "ExecutionRecord"] = field(default_factory=dict)
    benchmark_summary: Optional[pd.DataFrame] = None
    report_paths: Dict[str, Path] = field(default_factory=dict)

    def mark_complete(self, stage_name: str) -> None:
        self.completed_stages.add(stage_name)
        logger.debug(f"Completed stages: {sorted(self.completed_stages)}")

    def is_complete(self, stage_name: str) -> bool:
        return stage_name in self.completed_stages

    def add_record(self, record: "ExecutionRecord") -> None:
        self.records[record.name] = record

    def add_report_path(self, report_type: str, path: Path) -> None:
        self.report_paths[report_type] = path

    def elapsed_seconds(self) -> float:
        """Seconds since the context was created."""
        return (datetime.now() - self.start_time).total_seconds()

    def __repr__(self) -> str:
        done = ", ".join(sorted(self.completed_stages)) or "none"
        return (
            f"PipelineContext(completed=[{done}], image={self.image!r}, "
            f"elapsed={self.elapsed_seconds():.1f}s)"
        )
