"""
Setup stages - provisioning, data staging and argument composition.

This module contains the stages that prepare a run before the caller starts:
- Installing the container runtime and download tooling
- Building or pulling the caller image
- Staging the case-study artifacts and an optional customized model
- Composing the variable caller and hap.py arguments
"""

import logging
from typing import Optional, Set

from ..arguments import compose
from ..fetcher import ResourceFetcher, staging_artifacts
from ..pipeline_core import PipelineContext, Stage
from ..provisioner import EnvironmentProvisioner
from ..resources import check_disk_space

logger = logging.getLogger(__name__)


class RuntimeProvisioningStage(Stage):
    """Make sure docker and aria2c are installed."""

    def __init__(self, provisioner: Optional[EnvironmentProvisioner] = None):
        """Initialize with an optional provisioner (built from the context otherwise)."""
        super().__init__()
        self.provisioner = provisioner

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "runtime_provisioning"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Ensure the container runtime and download tooling are installed"

    def _process(self, context: PipelineContext) -> PipelineContext:
        provisioner = self.provisioner or EnvironmentProvisioner(context.run_config)
        provisioner.ensure_runtime()
        return context


class ImageProvisioningStage(Stage):
    """Build or pull the caller image."""

    def __init__(self, provisioner: Optional[EnvironmentProvisioner] = None):
        """Initialize with an optional provisioner (built from the context otherwise)."""
        super().__init__()
        self.provisioner = provisioner

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "image_provisioning"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Build or pull the DeepVariant image"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"runtime_provisioning"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        provisioner = self.provisioner or EnvironmentProvisioner(context.run_config)
        context.image = provisioner.ensure_image(context.run_config.build_image_locally)
        logger.info(f"Using IMAGE={context.image}")
        return context


class DataStagingStage(Stage):
    """Download the reference, reads and truth set into the input directory."""

    def __init__(self, fetcher: Optional[ResourceFetcher] = None):
        """Initialize with an optional fetcher (built from the context otherwise)."""
        super().__init__()
        self.fetcher = fetcher

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "data_staging"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Stage reference, alignment and truth data"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"runtime_provisioning"}

    @property
    def soft_dependencies(self) -> Set[str]:
        """Provision the image before spending hours on downloads."""
        return {"image_provisioning"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        run_config = context.run_config
        check_disk_space(run_config.base_dir, run_config.min_free_disk_gb)

        fetcher = self.fetcher or ResourceFetcher(run_config)
        artifacts = staging_artifacts(run_config)
        records = fetcher.fetch_all(artifacts)

        for artifact, record in zip(artifacts, records):
            context.add_record(record)
            context.staged_files.append(artifact.destination)

        downloaded = sum(1 for record in records if record.log_path is not None)
        logger.info(
            f"Staged {len(artifacts)} artifacts in {run_config.input_dir} "
            f"({downloaded} downloaded, {len(artifacts) - downloaded} already present)"
        )
        return context


class CustomModelStagingStage(Stage):
    """Copy a customized model checkpoint into the input directory."""

    def __init__(self, fetcher: Optional[ResourceFetcher] = None):
        """Initialize with an optional fetcher (built from the context otherwise)."""
        super().__init__()
        self.fetcher = fetcher

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "custom_model_staging"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Copy the customized model checkpoint"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {"runtime_provisioning"}

    @property
    def soft_dependencies(self) -> Set[str]:
        """Return the set of stage names this stage prefers to run after."""
        return {"data_staging"}

    def _process(self, context: PipelineContext) -> PipelineContext:
        source = context.tool_args.customized_model
        if not source:
            logger.info("No custom model specified.")
            return context

        fetcher = self.fetcher or ResourceFetcher(context.run_config)
        context.staged_files.extend(fetcher.copy_model_files(source))
        return context


class ArgumentCompositionStage(Stage):
    """Compose the variable caller and hap.py arguments."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "argument_composition"

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Compose DeepVariant and hap.py arguments"

    def _process(self, context: PipelineContext) -> PipelineContext:
        context.composed_args = compose(context.run_config, context.tool_args)
        logger.debug(f"DeepVariant extra args: {list(context.composed_args.pipeline_args)}")
        logger.debug(f"hap.py extra args: {list(context.composed_args.eval_args)}")
        return context
