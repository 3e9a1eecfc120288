"""
Workspace - where a benchmark run keeps its files.

Layout under the base directory:

    <base>/input/data/    staged artifacts
    <base>/output/        caller and hap.py results
    <base>/output/logs/   one execution log per stage
"""

import logging
from pathlib import Path
from typing import List, TYPE_CHECKING

from .error_handling import validate_output_directory

if TYPE_CHECKING:
    from ..models import RunConfig

logger = logging.getLogger(__name__)


class Workspace:
    """Directory layout of one run, created on demand.

    Attributes
    ----------
    base_dir : Path
        Root directory of the run
    input_dir : Path
        Directory receiving staged artifacts
    output_dir : Path
        Directory receiving results
    log_dir : Path
        Directory receiving per-stage execution logs
    """

    def __init__(self, run_config: "RunConfig"):
        """Initialize workspace paths from the run configuration.

        Parameters
        ----------
        run_config : RunConfig
            Configuration defining the directory layout
        """
        self.base_dir = run_config.base_dir
        self.input_dir = run_config.input_dir
        self.output_dir = run_config.output_dir
        self.log_dir = run_config.log_dir

    def create(self) -> None:
        """Create the directory layout, verifying each directory is writable."""
        for directory in (self.output_dir, self.input_dir, self.log_dir):
            validate_output_directory(directory, "workspace", create=True)
        logger.debug(f"Workspace initialized under {self.base_dir}")

    def get_log_path(self, stage_name: str) -> Path:
        """Return the execution log path for a stage.

        Parameters
        ----------
        stage_name : str
            Name the log file is based on

        Returns
        -------
        Path
            ``<log_dir>/<stage_name>.log``
        """
        return self.log_dir / f"{stage_name}.log"

    def get_input_path(self, name: str) -> Path:
        """Return the path of a staged input file."""
        return self.input_dir / name

    def get_output_path(self, name: str) -> Path:
        """Return the path of a result file."""
        return self.output_dir / name

    def list_logs(self) -> List[Path]:
        """List all execution logs written so far."""
        if not self.log_dir.exists():
            return []
        return sorted(self.log_dir.glob("*.log"))

    def __repr__(self) -> str:
        return f"Workspace(base_dir='{self.base_dir}')"
