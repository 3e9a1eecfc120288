"""
Benchmark pipeline orchestration.

Builds the stage list for a run and executes it with the PipelineRunner:

    runtime_provisioning -> image_provisioning -> data_staging
    -> [custom_model_staging] -> argument_composition -> variant_calling
    -> benchmark_evaluation -> [benchmark_summary] -> [run_report]

The first failing stage aborts the run; nothing after it is executed.
"""

import logging
from typing import List, Optional

from .models import RunConfig, ToolArgs
from .pipeline_core import PipelineContext, PipelineRunner, Stage, Workspace
from .provisioner import EnvironmentProvisioner
from .stages import (
    ArgumentCompositionStage,
    BenchmarkSummaryStage,
    CustomModelStagingStage,
    DataStagingStage,
    EvaluationStage,
    ImageProvisioningStage,
    ReportStage,
    RuntimeProvisioningStage,
    VariantCallingStage,
)

logger = logging.getLogger(__name__)


def build_pipeline_stages(
    tool_args: ToolArgs,
    summarize: bool = True,
    report: bool = True,
    provisioner: Optional[EnvironmentProvisioner] = None,
) -> List[Stage]:
    """Build the list of stages for a run.

    Parameters
    ----------
    tool_args : ToolArgs
        Optional caller settings; a customized model adds its staging stage
    summarize : bool
        Add the hap.py summary stage
    report : bool
        Add the HTML report stage
    provisioner : EnvironmentProvisioner, optional
        Shared by the provisioning stages; built from the context if omitted

    Returns
    -------
    List[Stage]
        Stages to execute
    """
    stages: List[Stage] = [
        RuntimeProvisioningStage(provisioner),
        ImageProvisioningStage(provisioner),
        DataStagingStage(),
    ]

    if tool_args.customized_model:
        stages.append(CustomModelStagingStage())

    stages.append(ArgumentCompositionStage())
    stages.append(VariantCallingStage())
    stages.append(EvaluationStage())

    if summarize:
        stages.append(BenchmarkSummaryStage())

    if report:
        stages.append(ReportStage())

    return stages


def run_pipeline(
    run_config: RunConfig,
    tool_args: ToolArgs,
    summarize: bool = True,
    report: bool = True,
    stages: Optional[List[Stage]] = None,
) -> PipelineContext:
    """Run the benchmark end to end.

    Parameters
    ----------
    run_config : RunConfig
        Validated run configuration
    tool_args : ToolArgs
        Optional caller settings
    summarize : bool
        Summarize hap.py metrics after the evaluation
    report : bool
        Write the HTML run report
    stages : List[Stage], optional
        Stages to run instead of the default list

    Returns
    -------
    PipelineContext
        Final context holding every execution record

    Raises
    ------
    PipelineError
        The failure of the first stage that did not succeed
    """
    logger.info("Starting the test...")

    workspace = Workspace(run_config)
    workspace.create()

    context = PipelineContext(run_config=run_config, tool_args=tool_args, workspace=workspace)
    if stages is None:
        stages = build_pipeline_stages(tool_args, summarize=summarize, report=report)

    logger.info(f"Pipeline configured with {len(stages)} stages")

    runner = PipelineRunner()
    try:
        context = runner.run(stages, context)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        raise

    logger.info("Pipeline completed successfully!")
    for log_file in workspace.list_logs():
        logger.debug(f"Execution log: {log_file}")
    return context
