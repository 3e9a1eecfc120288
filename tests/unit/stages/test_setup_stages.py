"""Unit tests for setup stages."""

import logging
from unittest.mock import Mock, patch

import pytest

from tests.mocks import FakeAria2c, create_test_context
from variantbench.arguments import MAKE_EXAMPLES_BASELINE
from variantbench.fetcher import ResourceFetcher, staging_artifacts
from variantbench.models import ToolArgs
from variantbench.pipeline_core.error_handling import FetchError, ProvisioningError
from variantbench.provisioner import EnvironmentProvisioner
from variantbench.stages.setup_stages import (
    ArgumentCompositionStage,
    CustomModelStagingStage,
    DataStagingStage,
    ImageProvisioningStage,
    RuntimeProvisioningStage,
)


@pytest.mark.unit
class TestProvisioningStages:
    """Test RuntimeProvisioningStage and ImageProvisioningStage."""

    def test_runtime_provisioning(self, context):
        """Test that the runtime is ensured."""
        provisioner = Mock(spec=EnvironmentProvisioner)

        RuntimeProvisioningStage(provisioner)(context)

        provisioner.ensure_runtime.assert_called_once_with()
        assert context.is_complete("runtime_provisioning")

    def test_image_provisioning_sets_image(self, context):
        """Test that the provisioned image is stored on the context."""
        provisioner = Mock(spec=EnvironmentProvisioner)
        provisioner.ensure_image.return_value = "google/deepvariant:1.0.0"
        context.mark_complete("runtime_provisioning")

        ImageProvisioningStage(provisioner)(context)

        provisioner.ensure_image.assert_called_once_with(False)
        assert context.image == "google/deepvariant:1.0.0"

    def test_image_provisioning_failure(self, context):
        """Test that a provisioning failure is tagged with the stage."""
        provisioner = Mock(spec=EnvironmentProvisioner)
        provisioner.ensure_image.side_effect = ProvisioningError("pull failed")
        context.mark_complete("runtime_provisioning")

        with pytest.raises(ProvisioningError) as exc_info:
            ImageProvisioningStage(provisioner)(context)

        assert exc_info.value.stage == "image_provisioning"
        assert context.image is None

    @patch("variantbench.provisioner.run_command")
    def test_image_provisioning_default_provisioner(self, mock_run, context):
        """Test that a provisioner is built from the run configuration."""
        context.mark_complete("runtime_provisioning")

        ImageProvisioningStage()(context)

        mock_run.assert_called_once_with(["docker", "pull", "google/deepvariant:1.0.0"])


@pytest.mark.unit
class TestDataStagingStage:
    """Test DataStagingStage."""

    @pytest.fixture
    def context(self, context):
        """Context with the runtime already provisioned."""
        context.mark_complete("runtime_provisioning")
        return context

    def test_stages_all_artifacts(self, context):
        """Test that every artifact is fetched and recorded."""
        fake = FakeAria2c()

        with patch("variantbench.fetcher.run_logged", side_effect=fake):
            DataStagingStage()(context)

        artifacts = staging_artifacts(context.run_config)
        assert len(fake.commands_executed) == len(artifacts)
        assert context.staged_files == [a.destination for a in artifacts]
        assert all(f"fetch_{a.name}" in context.records for a in artifacts)

    def test_rerun_downloads_nothing(self, context):
        """Test that a second staging on the same directory is a no-op."""
        fake = FakeAria2c()
        with patch("variantbench.fetcher.run_logged", side_effect=fake), patch(
            "variantbench.fetcher.remote_size", side_effect=fake.remote_size
        ):
            DataStagingStage()(context)

        second = create_test_context(context.run_config)
        second.mark_complete("runtime_provisioning")
        with patch("variantbench.fetcher.run_logged") as mock_run, patch(
            "variantbench.fetcher.remote_size", side_effect=fake.remote_size
        ):
            DataStagingStage()(second)

        mock_run.assert_not_called()
        assert all(record.duration == 0.0 for record in second.records.values())

    def test_fetch_failure(self, context):
        """Test that a failed download fails the stage."""
        with patch("variantbench.fetcher.run_logged", side_effect=FakeAria2c(returncode=22)):
            with pytest.raises(FetchError) as exc_info:
                DataStagingStage()(context)

        assert exc_info.value.stage == "data_staging"
        assert not context.is_complete("data_staging")

    def test_uses_given_fetcher(self, context):
        """Test that an injected fetcher is used."""
        fetcher = Mock(spec=ResourceFetcher)
        fetcher.fetch_all.return_value = []

        DataStagingStage(fetcher)(context)

        fetcher.fetch_all.assert_called_once_with(staging_artifacts(context.run_config))


@pytest.mark.unit
class TestCustomModelStagingStage:
    """Test CustomModelStagingStage."""

    def test_no_model(self, context, caplog):
        """Test that nothing is copied without a customized model."""
        caplog.set_level(logging.INFO)
        fetcher = Mock(spec=ResourceFetcher)
        context.mark_complete("runtime_provisioning")

        CustomModelStagingStage(fetcher)(context)

        fetcher.copy_model_files.assert_not_called()
        assert "No custom model specified." in caplog.text

    def test_copies_model(self, run_config):
        """Test that the checkpoint files are copied from the model prefix."""
        context = create_test_context(run_config, ToolArgs(customized_model="gs://bucket/model"))
        context.mark_complete("runtime_provisioning")
        fetcher = Mock(spec=ResourceFetcher)
        fetcher.copy_model_files.return_value = [run_config.input_dir / "model.ckpt.index"]

        CustomModelStagingStage(fetcher)(context)

        fetcher.copy_model_files.assert_called_once_with("gs://bucket/model")
        assert context.staged_files == [run_config.input_dir / "model.ckpt.index"]


@pytest.mark.unit
class TestArgumentCompositionStage:
    """Test ArgumentCompositionStage."""

    def test_composes_from_tool_args(self, run_config):
        """Test that composed args are stored on the context."""
        context = create_test_context(run_config, ToolArgs(regions="chr20"))

        ArgumentCompositionStage()(context)

        assert context.composed_args.pipeline_args == (
            "--make_examples_extra_args",
            MAKE_EXAMPLES_BASELINE,
            "--regions",
            "chr20",
        )
        assert context.composed_args.eval_args == ("-l", "chr20")
