"""
Output stages - run report generation.
"""

import logging
from typing import Set

from ..pipeline_core import PipelineContext, Stage
from ..report import generate_run_report

logger = logging.getLogger(__name__)

REPORT_NAME = "run_report.html"


class ReportStage(Stage):
    """Write an HTML report of the run."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "run_report"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Generate HTML run report"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"benchmark_evaluation"}

    @property
    def soft_dependencies(self) -> Set[str]:
        """Return the set of stage names this stage prefers to run after."""
        return {"benchmark_summary"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        output_path = context.workspace.get_output_path(REPORT_NAME)
        generate_run_report(
            context.run_config,
            list(context.records.values()),
            output_path,
            composed_args=context.composed_args,
            image=context.image,
            summary=context.benchmark_summary,
        )
        context.add_report_path("html", output_path)
        logger.info(f"Run report written to {output_path}")
        return context
