"""
Resource fetching for the benchmark inputs.

Large artifacts are downloaded with ``aria2c -c`` so that a partial download
is resumed rather than restarted, using several connections per file. A file
already on disk is skipped only when its size matches the ``Content-Length``
the server reports. Several artifacts can be fetched at once; the first
failure aborts the rest.
"""

import dataclasses
import logging
import subprocess
import time
import urllib.request
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Union

from .arguments import MODEL_FILES
from .models import Artifact, ExecutionRecord, RunConfig
from .pipeline_core.error_handling import FetchError
from .utils import run_command, run_logged

logger = logging.getLogger(__name__)

HEAD_TIMEOUT = 30.0


def staging_artifacts(run_config: RunConfig) -> List[Artifact]:
    """Return the files the case study needs, in download order.

    Parameters
    ----------
    run_config : RunConfig
        Provides file names, source URLs and the input directory

    Returns
    -------
    list of Artifact
    """
    case_study = run_config.case_study_url.rstrip("/")
    pacbio = run_config.pacbio_data_url.rstrip("/")
    ref = run_config.reference

    urls = [
        f"{case_study}/{run_config.truth_bed}",
        f"{case_study}/{run_config.truth_vcf}",
        f"{case_study}/{run_config.truth_vcf}.tbi",
        f"{pacbio}/{run_config.bam}",
        f"{pacbio}/{run_config.bam}.bai",
        f"{case_study}/{ref}.gz",
        f"{case_study}/{ref}.gz.fai",
        f"{case_study}/{ref}.gz.gzi",
        f"{case_study}/{ref}.gzi",
        f"{case_study}/{ref}.fai",
    ]
    return [Artifact(url=url, destination_dir=run_config.input_dir) for url in urls]


def remote_size(url: str, timeout: float = HEAD_TIMEOUT) -> Optional[int]:
    """Return the ``Content-Length`` the server reports for ``url``.

    Returns None when the server cannot be reached or sends no length.
    """
    request = urllib.request.Request(url, method="HEAD")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            length = response.headers.get("Content-Length")
    except (OSError, ValueError) as e:
        logger.warning(f"Could not query the size of {url}: {e}")
        return None
    if length is None or not length.strip().isdigit():
        return None
    return int(length)


def _with_remote_size(artifact: Artifact) -> Artifact:
    if artifact.expected_size is not None:
        return artifact
    return dataclasses.replace(artifact, expected_size=remote_size(artifact.url))


class ResourceFetcher:
    """Idempotent, resumable artifact downloads.

    Parameters
    ----------
    run_config : RunConfig
        Provides connection counts, parallelism and the log directory
    """

    def __init__(self, run_config: RunConfig):
        self.run_config = run_config

    def _log_path(self, name: str) -> Path:
        return self.run_config.log_dir / f"fetch_{name}.log"

    def aria2c_command(self, artifact: Artifact) -> List[str]:
        """Return the resumable multi-connection download command for an artifact."""
        connections = self.run_config.fetch_connections
        return [
            "aria2c",
            "-c",
            f"-x{connections}",
            f"-s{connections}",
            artifact.url,
            "-d",
            str(artifact.destination_dir),
        ]

    def fetch(self, artifact: Artifact) -> ExecutionRecord:
        """Download one artifact unless it is already complete.

        A file left behind without an aria2 control file is only trusted once
        its size matches the server's ``Content-Length``. Otherwise it is
        handed to ``aria2c -c``, which resumes it by length.

        Parameters
        ----------
        artifact : Artifact
            The file to stage

        Returns
        -------
        ExecutionRecord
            ``duration`` is 0.0 and no log is written when nothing was fetched

        Raises
        ------
        FetchError
            If the destination directory is missing, aria2c fails or the file
            is incomplete or the wrong size afterwards
        """
        destination_dir = Path(artifact.destination_dir)
        if not destination_dir.is_dir():
            raise FetchError(
                f"Destination directory does not exist: {destination_dir}", url=artifact.url
            )

        if artifact.destination.is_file() and not artifact.control_file.exists():
            artifact = _with_remote_size(artifact)
            if artifact.expected_size is not None and artifact.is_complete():
                logger.info(f"{artifact.name} already present, skipping download")
                return ExecutionRecord(name=f"fetch_{artifact.name}", returncode=0, duration=0.0)
            present = artifact.destination.stat().st_size
            if artifact.expected_size is None:
                logger.warning(f"Size of {artifact.name} cannot be confirmed, resuming with aria2c")
            else:
                logger.warning(
                    f"{artifact.name} has {present} of {artifact.expected_size} bytes, resuming"
                )

        logger.info(f"Fetching {artifact.url} -> {destination_dir}")
        log_path = self._log_path(artifact.name)
        start = time.time()
        try:
            returncode = run_logged(self.aria2c_command(artifact), log_path, mirror=False)
        except OSError as e:
            raise FetchError(
                f"Could not start aria2c for {artifact.name}: {e}", url=artifact.url
            ) from e
        record = ExecutionRecord(
            name=f"fetch_{artifact.name}",
            returncode=returncode,
            duration=time.time() - start,
            log_path=log_path,
        )

        if not record.succeeded:
            raise FetchError(
                f"Download of {artifact.name} failed with status {returncode} (see {log_path})",
                url=artifact.url,
            )
        if artifact.expected_size is None:
            artifact = _with_remote_size(artifact)
        if not artifact.is_complete():
            size = artifact.destination.stat().st_size if artifact.destination.is_file() else 0
            raise FetchError(
                f"Download of {artifact.name} finished but the file is incomplete "
                f"({size} of {artifact.expected_size or 'unknown'} bytes)",
                url=artifact.url,
            )

        logger.info(f"Fetched {artifact.name} in {record.duration:.1f}s")
        return record

    def fetch_url(self, url: str, destination_dir: Union[str, Path]) -> ExecutionRecord:
        """Fetch a URL into a directory."""
        return self.fetch(Artifact(url=url, destination_dir=Path(destination_dir)))

    def fetch_all(
        self, artifacts: List[Artifact], max_workers: Optional[int] = None
    ) -> List[ExecutionRecord]:
        """Fetch several artifacts concurrently.

        Parameters
        ----------
        artifacts : list of Artifact
            Files to stage
        max_workers : int, optional
            Concurrent downloads (default: ``max_parallel_downloads``)

        Returns
        -------
        list of ExecutionRecord
            In the same order as ``artifacts``

        Raises
        ------
        FetchError
            The first download failure; pending downloads are cancelled
        """
        if not artifacts:
            return []

        workers = min(max_workers or self.run_config.max_parallel_downloads, len(artifacts))
        records: Dict[int, ExecutionRecord] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index: Dict[Future, int] = {
                executor.submit(self.fetch, artifact): i for i, artifact in enumerate(artifacts)
            }
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    records[index] = future.result()
                except Exception as e:
                    logger.error(f"Fetching {artifacts[index].name} failed: {e}")
                    for f in future_to_index:
                        if not f.done():
                            f.cancel()
                    raise

        return [records[i] for i in range(len(artifacts))]

    def copy_model_files(self, source: str) -> List[Path]:
        """Copy the checkpoint files of a customized model into the input directory.

        Parameters
        ----------
        source : str
            Object storage prefix (``gs://...``) holding the checkpoint files

        Returns
        -------
        list of Path
            Local paths of the copied files

        Raises
        ------
        FetchError
            If any copy fails
        """
        source = source.rstrip("/")
        input_dir = self.run_config.input_dir
        logger.info(f"Copy from gs:// path {source} to {input_dir}/")

        copied = []
        for file_name in MODEL_FILES:
            try:
                run_command(["gsutil", "cp", f"{source}/{file_name}", str(input_dir)])
            except (subprocess.CalledProcessError, OSError) as e:
                raise FetchError(
                    f"Failed to copy model file {file_name}: {e}", url=f"{source}/{file_name}"
                ) from e
            copied.append(input_dir / file_name)
        return copied
