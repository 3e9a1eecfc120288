"""
Exceptions raised by benchmark stages, plus a retry decorator and path checks.

Every failure that should stop a run is a PipelineError. The stage that raised
it is recorded in ``stage`` (filled in by Stage.__call__ when left empty) and
anything structured about the failure goes into ``details``.
"""

import logging
import time
from functools import wraps
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Type, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PipelineError(Exception):
    """A failure that ends the benchmark run.

    Parameters
    ----------
    message : str
        Human-readable description
    stage : str, optional
        Name of the stage that failed
    details : dict, optional
        Machine-readable facts about the failure
    """

    def __init__(self, message: str, stage: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(message)
        self.stage = stage
        self.details = dict(details) if details else {}


class ConfigurationError(PipelineError):
    """A setting in the run configuration is unusable."""

    def __init__(self, message: str, field: str, stage: Optional[str] = None):
        super().__init__(message, stage, {"field": field})


class ToolNotFoundError(PipelineError):
    """An executable the run needs is missing."""

    def __init__(self, tool: str, stage: Optional[str] = None):
        super().__init__(f"Required tool '{tool}' not found in PATH", stage, {"tool": tool})


class ProvisioningError(PipelineError):
    """The container runtime or an image could not be made available."""


class FetchError(PipelineError):
    """An artifact did not end up complete in the input directory."""

    def __init__(self, message: str, url: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message, stage, {"url": url} if url else None)
        self.url = url


class ExecutionError(PipelineError):
    """An external tool returned a non-zero exit status."""

    def __init__(
        self,
        tool: str,
        returncode: int,
        log_path: Optional[PathLike] = None,
        stage: Optional[str] = None,
    ):
        self.returncode = returncode
        self.log_path = Path(log_path) if log_path else None
        where = f" (see {self.log_path})" if self.log_path else ""
        super().__init__(
            f"{tool} exited with status {returncode}{where}",
            stage,
            {"tool": tool, "returncode": returncode, "log_path": str(self.log_path or "")},
        )


class FileFormatError(PipelineError):
    """A file exists but is not what the stage expected."""

    def __init__(self, file_path: str, expected_format: str, stage: Optional[str] = None):
        super().__init__(
            f"Invalid file format for {file_path}. Expected: {expected_format}",
            stage,
            {"file": file_path, "expected_format": expected_format},
        )


class StageExecutionError(PipelineError):
    """Wraps an unexpected exception so it carries the failing stage's name."""

    def __init__(self, stage_name: str, original_error: Exception):
        super().__init__(
            f"Stage '{stage_name}' failed: {original_error}",
            stage_name,
            {
                "original_error": str(original_error),
                "error_type": type(original_error).__name__,
            },
        )
        self.original_error = original_error

    def __reduce__(self):
        # Exception pickling replays self.args, which does not match __init__.
        return (self.__class__, (self.stage, self.original_error), self.__dict__)


def retry_on_failure(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    logger: Optional[logging.Logger] = None,
) -> Callable:
    """Call the decorated function up to ``max_attempts`` times.

    Only ``exceptions`` trigger another attempt. The wait starts at ``delay``
    seconds and is multiplied by ``backoff`` after every failed attempt. The
    exception from the final attempt propagates unchanged.
    """

    def decorator(func: Callable) -> Callable:
        log = logger or logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            wait = delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        log.error(f"Giving up after {attempt} attempts: {e}")
                        raise
                    log.warning(
                        f"Attempt {attempt} of {max_attempts} failed: {e}. "
                        f"Trying again in {wait:.1f}s"
                    )
                    time.sleep(wait)
                    wait *= backoff
                    attempt += 1

        return wrapper

    return decorator


def validate_file_exists(file_path: PathLike, stage_name: str) -> Path:
    """Return ``file_path`` as a Path if it names an existing regular file.

    Raises
    ------
    FileNotFoundError
        Nothing exists at the path
    FileFormatError
        Something exists but it is not a regular file
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    if not path.is_file():
        raise FileFormatError(str(path), "file", stage_name)
    return path


def validate_output_directory(output_dir: PathLike, stage_name: str, create: bool = True) -> Path:
    """Make sure ``output_dir`` is a directory the run can write into.

    Parameters
    ----------
    output_dir : str or Path
        Directory to check
    stage_name : str
        Reported in a FileFormatError when the path is not a directory
    create : bool
        Create the directory (and its parents) when missing

    Returns
    -------
    Path
        The checked directory
    """
    path = Path(output_dir)
    if path.exists() and not path.is_dir():
        raise FileFormatError(str(path), "directory", stage_name)
    if not path.exists():
        if not create:
            raise FileNotFoundError(f"Output directory does not exist: {path}")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(f"Cannot create directory: {path}") from e

    marker = path / ".write_test"
    try:
        marker.touch()
        marker.unlink()
    except PermissionError as e:
        raise PermissionError(f"Cannot write to directory: {path}") from e
    return path
