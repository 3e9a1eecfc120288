"""
Evaluation stages - scoring the calls with hap.py.

This module contains:
- EvaluationStage: decompress the reference, pull hap.py and run it
- BenchmarkSummaryStage: load hap.py's summary table and log the metrics
"""

import logging
import subprocess
import time
from typing import List, Set

from ..benchmark import format_summary, headline_metrics, load_summary, summary_path
from ..models import ComposedArgs, ExecutionRecord, RunConfig
from ..pipeline_core import PipelineContext, Stage
from ..pipeline_core.error_handling import (
    ExecutionError,
    PipelineError,
    ProvisioningError,
    validate_file_exists,
)
from ..provisioner import EnvironmentProvisioner
from ..utils import decompress_gzip, run_logged

logger = logging.getLogger(__name__)

HAPPY_BIN = "/opt/hap.py/bin/hap.py"


def happy_command(run_config: RunConfig, composed_args: ComposedArgs) -> List[str]:
    """Build the docker invocation of hap.py.

    Directories are mounted at their host paths, so every argument is a host path.

    Parameters
    ----------
    run_config : RunConfig
        Provides paths, file names, the hap.py image and engine
    composed_args : ComposedArgs
        Variable hap.py flags; appended after the fixed arguments

    Returns
    -------
    list of str
    """
    input_dir = run_config.input_dir
    output_dir = run_config.output_dir
    docker = EnvironmentProvisioner(run_config).docker_command(
        "run",
        "-i",
        "-v",
        f"{input_dir}:{input_dir}",
        "-v",
        f"{output_dir}:{output_dir}",
        run_config.happy_image,
    )
    return (
        docker
        + [
            HAPPY_BIN,
            str(input_dir / run_config.truth_vcf),
            str(output_dir / run_config.output_vcf),
            "-f",
            str(input_dir / run_config.truth_bed),
            "-r",
            str(input_dir / run_config.reference),
            "-o",
            str(run_config.happy_output),
            f"--engine={run_config.happy_engine}",
        ]
        + list(composed_args.eval_args)
    )


class EvaluationStage(Stage):
    """Score the DeepVariant calls against the truth set with hap.py."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "benchmark_evaluation"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Evaluate calls with hap.py"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"variant_calling"}

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Require composed arguments."""
        if context.composed_args is None:
            raise PipelineError("Arguments have not been composed", stage=self.name)

    def _process(self, context: PipelineContext) -> PipelineContext:
        run_config = context.run_config
        logger.info("Start evaluation with hap.py...")

        # hap.py cannot read the bgzipped FASTA; the index was staged already
        start = self._start_subtask("reference_decompression")
        compressed = validate_file_exists(
            context.workspace.get_input_path(run_config.compressed_reference), self.name
        )
        decompress_gzip(compressed, context.workspace.get_input_path(run_config.reference))
        self._end_subtask("reference_decompression", start)

        start = self._start_subtask("image_pull")
        try:
            EnvironmentProvisioner(run_config).pull_image(run_config.happy_image)
        except (subprocess.CalledProcessError, OSError) as e:
            raise ProvisioningError(
                f"Failed to pull docker image {run_config.happy_image}: {e}", stage=self.name
            ) from e
        self._end_subtask("image_pull", start)

        start = self._start_subtask("happy")
        log_path = context.workspace.get_log_path("happy")
        returncode = run_logged(happy_command(run_config, context.composed_args), log_path)
        record = ExecutionRecord(
            name=self.name,
            returncode=returncode,
            duration=time.time() - start,
            log_path=log_path,
        )
        self._end_subtask("happy", start)
        context.add_record(record)

        if not record.succeeded:
            raise ExecutionError("hap.py", returncode, log_path, stage=self.name)

        logger.info("Done.")
        return context


class BenchmarkSummaryStage(Stage):
    """Load hap.py's summary table and log the accuracy metrics."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "benchmark_summary"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Summarize hap.py metrics"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"benchmark_evaluation"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        path = summary_path(context.run_config.happy_output)
        try:
            summary = load_summary(path)
        except FileNotFoundError as e:
            raise PipelineError(str(e), stage=self.name) from e

        context.benchmark_summary = summary
        for line in format_summary(summary):
            logger.info(line)
        for variant_type, metrics in headline_metrics(summary).items():
            logger.info(
                f"{variant_type} PASS: F1 {metrics['F1']:.6f} "
                f"(recall {metrics['Recall']:.6f}, precision {metrics['Precision']:.6f})"
            )
        return context
