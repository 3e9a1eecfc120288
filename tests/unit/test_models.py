"""Unit tests for the value types in variantbench.models."""

import dataclasses
from pathlib import Path

import pytest

from variantbench.config import load_config
from variantbench.models import Artifact, ExecutionRecord, RunConfig
from variantbench.pipeline_core.error_handling import ConfigurationError


@pytest.mark.unit
class TestRunConfig:
    """Test RunConfig construction and validation."""

    def test_directory_layout(self, tmp_path):
        """Test that the input, output and log directories derive from the base."""
        config = RunConfig.from_config(load_config(), base_dir=str(tmp_path))

        assert config.base_dir == tmp_path
        assert config.input_dir == tmp_path / "input" / "data"
        assert config.output_dir == tmp_path / "output"
        assert config.log_dir == tmp_path / "output" / "logs"
        assert config.happy_output == tmp_path / "output" / "happy.output"

    def test_defaults_from_packaged_config(self, tmp_path):
        """Test the packaged defaults."""
        config = RunConfig.from_config(load_config(), base_dir=str(tmp_path))

        assert config.num_shards == 64
        assert config.model_type == "PACBIO"
        assert config.bin_version == "1.0.0"
        assert config.build_image_locally is False
        assert config.compressed_reference == f"{config.reference}.gz"

    def test_base_dir_expands_user(self, monkeypatch, tmp_path):
        """Test that ~ in the base directory is expanded."""
        monkeypatch.setenv("HOME", str(tmp_path))
        config = RunConfig.from_config(load_config(), base_dir="~/case")

        assert config.base_dir == tmp_path / "case"

    def test_overrides(self, tmp_path):
        """Test that explicit arguments override configuration values."""
        config = RunConfig.from_config(
            load_config(), base_dir=str(tmp_path), build_image_locally=True, num_shards=8
        )

        assert config.build_image_locally is True
        assert config.num_shards == 8

    def test_unknown_keys_ignored(self, tmp_path):
        """Test that configuration keys without a field are ignored."""
        cfg = dict(load_config(), comment="not a field")
        config = RunConfig.from_config(cfg, base_dir=str(tmp_path))

        assert not hasattr(config, "comment")

    @pytest.mark.parametrize("num_shards", [0, -4])
    def test_non_positive_shards_rejected(self, tmp_path, num_shards):
        """Test that the shard count must be positive."""
        with pytest.raises(ConfigurationError) as exc_info:
            RunConfig.from_config(load_config(), base_dir=str(tmp_path), num_shards=num_shards)
        assert exc_info.value.details["field"] == "num_shards"

    @pytest.mark.parametrize("num_shards", ["64", 2.5, True])
    def test_non_integer_shards_rejected(self, tmp_path, num_shards):
        """Test that the shard count must be an integer."""
        cfg = dict(load_config(), num_shards=num_shards)
        with pytest.raises(ConfigurationError):
            RunConfig.from_config(cfg, base_dir=str(tmp_path))

    @pytest.mark.parametrize(
        "key, value",
        [
            ("fetch_connections", "10"),
            ("fetch_connections", 0),
            ("max_parallel_downloads", 1.5),
            ("max_parallel_downloads", -1),
            ("build_retry_delay", "5"),
            ("build_retry_delay", -1.0),
            ("min_free_disk_gb", None),
            ("use_sudo", "false"),
            ("happy_image", 7),
            ("case_study_url", ""),
        ],
    )
    def test_bad_setting_type_or_range(self, tmp_path, key, value):
        """Test that mistyped or out-of-range settings are configuration errors."""
        cfg = dict(load_config(), **{key: value})
        with pytest.raises(ConfigurationError) as exc_info:
            RunConfig.from_config(cfg, base_dir=str(tmp_path))
        assert exc_info.value.details["field"] == key

    def test_integer_amounts_accepted(self, tmp_path):
        """Test that whole numbers are valid for second and gigabyte settings."""
        cfg = dict(load_config(), build_retry_delay=5, min_free_disk_gb=0)
        run_config = RunConfig.from_config(cfg, base_dir=str(tmp_path))
        assert run_config.build_retry_delay == 5

    @pytest.mark.parametrize("key", ["reference", "bam", "truth_vcf", "truth_bed"])
    def test_missing_required_file(self, tmp_path, key):
        """Test that every input file name is required."""
        cfg = dict(load_config(), **{key: ""})
        with pytest.raises(ConfigurationError, match=key):
            RunConfig.from_config(cfg, base_dir=str(tmp_path))

    def test_missing_base_dir(self):
        """Test that a base directory is required."""
        cfg = dict(load_config(), base_dir="")
        with pytest.raises(ConfigurationError, match="base directory"):
            RunConfig.from_config(cfg)

    def test_frozen(self, run_config):
        """Test that a RunConfig cannot be mutated."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            run_config.num_shards = 1


@pytest.mark.unit
class TestExecutionRecord:
    """Test ExecutionRecord."""

    def test_succeeded(self):
        """Test that only status 0 counts as success."""
        assert ExecutionRecord("variant_calling", 0, 1.0).succeeded
        assert not ExecutionRecord("variant_calling", 2, 1.0).succeeded


@pytest.mark.unit
class TestArtifact:
    """Test Artifact paths and completeness."""

    def test_name_and_destination(self, tmp_path):
        """Test that the file name is the URL basename."""
        artifact = Artifact("https://host/bucket/HG002.bam.bai", tmp_path)

        assert artifact.name == "HG002.bam.bai"
        assert artifact.destination == tmp_path / "HG002.bam.bai"
        assert artifact.control_file == tmp_path / "HG002.bam.bai.aria2"

    def test_missing_file_incomplete(self, tmp_path):
        """Test that an absent file is not complete."""
        assert not Artifact("https://host/ref.fai", tmp_path).is_complete()

    def test_present_file_complete(self, tmp_path):
        """Test that a present file without control file is complete."""
        (tmp_path / "ref.fai").write_text("chr20\t64444167\n")

        assert Artifact("https://host/ref.fai", tmp_path).is_complete()

    def test_control_file_marks_partial_download(self, tmp_path):
        """Test that a leftover aria2 control file means the download is partial."""
        (tmp_path / "ref.fai").write_text("chr20")
        (tmp_path / "ref.fai.aria2").write_bytes(b"\x00")

        assert not Artifact("https://host/ref.fai", tmp_path).is_complete()

    def test_expected_size(self, tmp_path):
        """Test that a known size must match."""
        path = Path(tmp_path) / "ref.fai"
        path.write_bytes(b"12345")

        assert Artifact("https://host/ref.fai", tmp_path, expected_size=5).is_complete()
        assert not Artifact("https://host/ref.fai", tmp_path, expected_size=6).is_complete()
