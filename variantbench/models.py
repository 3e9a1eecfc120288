"""
Value types shared by the benchmark pipeline.

RunConfig and ToolArgs are built once at startup and never mutated. ComposedArgs
is derived from them by :func:`variantbench.arguments.compose`. ExecutionRecord
is what every process-running step reports back, and Artifact describes a file
that has to be staged before the caller can run.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .pipeline_core.error_handling import ConfigurationError

# aria2c keeps this control file next to a download until it is complete
ARIA2_CONTROL_SUFFIX = ".aria2"

_COUNT_FIELDS = ("num_shards", "fetch_connections", "max_parallel_downloads")
_AMOUNT_FIELDS = ("build_retry_delay", "min_free_disk_gb")
_FLAG_FIELDS = ("use_sudo", "build_image_locally")
_TEXT_FIELDS = (
    "reference",
    "bam",
    "truth_vcf",
    "truth_bed",
    "output_vcf",
    "output_gvcf",
    "bin_version",
    "model_type",
    "case_study_url",
    "pacbio_data_url",
    "deepvariant_image",
    "local_image_name",
    "happy_image",
    "happy_engine",
    "happy_output_prefix",
)


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one benchmark run.

    Attributes
    ----------
    base_dir : Path
        Root of the run; inputs, outputs and logs live below it
    reference : str
        Uncompressed reference FASTA file name; the staged archive is ``<reference>.gz``
    bam : str
        Aligned reads file name
    truth_vcf : str
        Truth variant set file name
    truth_bed : str
        Truth confidence regions file name
    num_shards : int
        Shard count passed through to the caller
    output_vcf : str
        Name of the variant calls written by the caller
    output_gvcf : str
        Name of the genome calls written by the caller
    build_image_locally : bool
        Build the caller image from the local Dockerfile instead of pulling it
    """

    base_dir: Path
    reference: str
    bam: str
    truth_vcf: str
    truth_bed: str
    num_shards: int = 64
    output_vcf: str = "HG002.output.vcf.gz"
    output_gvcf: str = "HG002.output.g.vcf.gz"
    build_image_locally: bool = False
    bin_version: str = "1.0.0"
    model_type: str = "PACBIO"
    case_study_url: str = "https://storage.googleapis.com/deepvariant/case-study-testdata"
    pacbio_data_url: str = "https://storage.googleapis.com/deepvariant/pacbio-case-study-testdata"
    deepvariant_image: str = "google/deepvariant"
    local_image_name: str = "deepvariant"
    happy_image: str = "pkrusche/hap.py"
    happy_engine: str = "vcfeval"
    happy_output_prefix: str = "happy.output"
    use_sudo: bool = True
    fetch_connections: int = 10
    max_parallel_downloads: int = 4
    build_retry_delay: float = 5.0
    min_free_disk_gb: float = 0.0

    @property
    def input_dir(self) -> Path:
        return self.base_dir / "input" / "data"

    @property
    def output_dir(self) -> Path:
        return self.base_dir / "output"

    @property
    def log_dir(self) -> Path:
        return self.output_dir / "logs"

    @property
    def compressed_reference(self) -> str:
        return f"{self.reference}.gz"

    @property
    def happy_output(self) -> Path:
        return self.output_dir / self.happy_output_prefix

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        base_dir: Optional[str] = None,
        build_image_locally: bool = False,
        num_shards: Optional[int] = None,
    ) -> "RunConfig":
        """Build and validate a RunConfig from a loaded configuration dictionary.

        Parameters
        ----------
        config : dict
            Configuration as returned by :func:`variantbench.config.load_config`
        base_dir : str, optional
            Overrides ``config["base_dir"]``
        build_image_locally : bool
            Whether the caller image is built locally
        num_shards : int, optional
            Overrides ``config["num_shards"]``

        Returns
        -------
        RunConfig
            The validated configuration

        Raises
        ------
        ConfigurationError
            If a required value is missing or invalid
        """
        known = set(cls.__dataclass_fields__) - {"base_dir", "build_image_locally"}
        values = {key: config[key] for key in known if key in config}

        raw_base = base_dir or config.get("base_dir")
        if not raw_base:
            raise ConfigurationError("A base directory is required", "base_dir")
        values["base_dir"] = Path(os.path.expanduser(str(raw_base))).absolute()
        values["build_image_locally"] = bool(build_image_locally)
        if num_shards is not None:
            values["num_shards"] = num_shards

        for required in ("reference", "bam", "truth_vcf", "truth_bed"):
            if not values.get(required):
                raise ConfigurationError(f"Missing required setting '{required}'", required)

        run_config = cls(**values)
        run_config.validate()
        return run_config

    def validate(self) -> None:
        """Raise ConfigurationError if any value has the wrong type or is out of range."""
        for name in _COUNT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}", name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be greater than 0, got {value}", name)
        for name in _AMOUNT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}", name)
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}", name)
        for name in _FLAG_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}", name)
        for name in _TEXT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"'{name}' must be a non-empty string, got {value!r}", name
                )


@dataclass(frozen=True)
class ToolArgs:
    """Optional caller settings supplied on the command line.

    Empty strings mean "not given"; they never produce a flag.
    """

    customized_model: str = ""
    make_examples_args: str = ""
    call_variants_args: str = ""
    postprocess_variants_args: str = ""
    regions: str = ""


@dataclass(frozen=True)
class ComposedArgs:
    """Variable argument tokens for the caller and the benchmarking tool."""

    pipeline_args: Tuple[str, ...] = ()
    eval_args: Tuple[str, ...] = ()


@dataclass
class ExecutionRecord:
    """Result of one external invocation."""

    name: str
    returncode: int
    duration: float
    log_path: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class Artifact:
    """A remote file with a canonical local destination."""

    url: str
    destination_dir: Path
    expected_size: Optional[int] = None

    @property
    def name(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1]

    @property
    def destination(self) -> Path:
        return Path(self.destination_dir) / self.name

    @property
    def control_file(self) -> Path:
        return self.destination.with_name(self.name + ARIA2_CONTROL_SUFFIX)

    def is_complete(self) -> bool:
        """Return True if the file is fully present at its destination.

        A file is complete when it exists, aria2c left no control file beside
        it, and its size matches ``expected_size`` when that is known.
        """
        if not self.destination.is_file() or self.control_file.exists():
            return False
        if self.expected_size is not None:
            return self.destination.stat().st_size == self.expected_size
        return True
