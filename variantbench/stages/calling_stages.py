"""
Variant calling stage.

Runs DeepVariant's ``run_deepvariant`` inside its container with the input and
output directories bind-mounted. The combined output is mirrored to the
console and to ``deepvariant_runtime.log``.
"""

import logging
import time
from typing import List, Set

from ..models import ComposedArgs, ExecutionRecord, RunConfig
from ..pipeline_core import PipelineContext, Stage
from ..pipeline_core.error_handling import ExecutionError, PipelineError
from ..provisioner import EnvironmentProvisioner
from ..resources import check_shards
from ..utils import run_logged

logger = logging.getLogger(__name__)

RUN_DEEPVARIANT = "/opt/deepvariant/bin/run_deepvariant"
CONTAINER_INPUT_DIR = "/input"
CONTAINER_OUTPUT_DIR = "/output"


def deepvariant_flags(run_config: RunConfig) -> List[str]:
    """Return the fixed run_deepvariant flags, as seen from inside the container."""
    return [
        f"--model_type={run_config.model_type}",
        f"--ref={CONTAINER_INPUT_DIR}/{run_config.compressed_reference}",
        f"--reads={CONTAINER_INPUT_DIR}/{run_config.bam}",
        f"--output_vcf={CONTAINER_OUTPUT_DIR}/{run_config.output_vcf}",
        f"--output_gvcf={CONTAINER_OUTPUT_DIR}/{run_config.output_gvcf}",
        f"--num_shards={run_config.num_shards}",
        f"--logging_dir={CONTAINER_OUTPUT_DIR}/logs",
    ]


def deepvariant_command(
    run_config: RunConfig, image: str, composed_args: ComposedArgs
) -> List[str]:
    """Build the full docker invocation of run_deepvariant.

    Parameters
    ----------
    run_config : RunConfig
        Provides paths, file names and the shard count
    image : str
        Caller image reference
    composed_args : ComposedArgs
        Variable flags; appended after the fixed flags

    Returns
    -------
    list of str
    """
    docker = EnvironmentProvisioner(run_config).docker_command(
        "run",
        "-v",
        f"{run_config.input_dir}:{CONTAINER_INPUT_DIR}:ro",
        "-v",
        f"{run_config.output_dir}:{CONTAINER_OUTPUT_DIR}",
        image,
    )
    return docker + [RUN_DEEPVARIANT] + deepvariant_flags(run_config) + list(
        composed_args.pipeline_args
    )


class VariantCallingStage(Stage):
    """Run DeepVariant on the staged reads."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "variant_calling"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Run DeepVariant"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"image_provisioning", "data_staging", "argument_composition"}

    @property
    def soft_dependencies(self) -> Set[str]:
        """Return the set of stage names this stage prefers to run after."""
        return {"custom_model_staging"}

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Require an image and composed arguments."""
        if not context.image:
            raise PipelineError("No DeepVariant image available", stage=self.name)
        if context.composed_args is None:
            raise PipelineError("Arguments have not been composed", stage=self.name)

    def _process(self, context: PipelineContext) -> PipelineContext:
        run_config = context.run_config
        check_shards(run_config.num_shards)

        cmd = deepvariant_command(run_config, context.image, context.composed_args)
        log_path = context.workspace.get_log_path("deepvariant_runtime")

        logger.info("Run DeepVariant...")
        logger.info(f"using IMAGE={context.image}")
        start = time.time()
        returncode = run_logged(cmd, log_path)
        record = ExecutionRecord(
            name=self.name,
            returncode=returncode,
            duration=time.time() - start,
            log_path=log_path,
        )
        context.add_record(record)

        if not record.succeeded:
            raise ExecutionError("run_deepvariant", returncode, log_path, stage=self.name)

        logger.info(f"Done. DeepVariant finished in {record.duration:.1f}s")
        return context
