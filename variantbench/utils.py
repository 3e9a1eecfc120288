# File: variantbench/utils.py
# Location: variantbench/variantbench/utils.py

"""
Utility functions module.

Provides helper functions for running commands, mirroring their output into
log files, checking tool availability and decompressing staged archives.
"""

import gzip
import logging
import os
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import IO, List, Sequence, Union

logger = logging.getLogger("variantbench")

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off", ""}

CHUNK_SIZE = 64 * 1024


def str_to_bool(value: Union[str, bool, None]) -> bool:
    """
    Interpret a boolean-like command-line string.

    Parameters
    ----------
    value : str, bool or None
        Value such as "true", "false", "1", "0", "yes" or "no". None is False.

    Returns
    -------
    bool

    Raises
    ------
    ValueError
        If the string is not a recognised boolean spelling.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


def check_external_tools(tools: List[str]) -> bool:
    """Return True when every name in ``tools`` resolves to an executable."""
    missing = [tool for tool in tools if shutil.which(tool) is None]
    if missing:
        logger.debug(f"Not on PATH: {', '.join(missing)}")
        return False
    logger.debug(f"On PATH: {', '.join(tools)}")
    return True


def run_command(cmd: List[str]) -> str:
    """
    Run ``cmd`` to completion and return what it wrote to stdout.

    Raises
    ------
    subprocess.CalledProcessError
        On a non-zero exit status, with the captured stderr attached.
    """
    logger.debug("$ %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        logger.error(
            "%s exited with status %d: %s", cmd[0], result.returncode, result.stderr.strip()
        )
        raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
    return result.stdout


def format_duration(seconds: float) -> str:
    """Format seconds the way the shell ``time`` builtin reports real time."""
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes)}m{secs:.3f}s"


def run_logged(
    cmd: Sequence[str],
    log_path: Union[str, Path],
    mirror: Union[IO[bytes], bool, None] = None,
    append: bool = False,
) -> int:
    """
    Run a command, teeing its combined stdout/stderr to a log file.

    Output is copied as raw bytes in the chunks the process produces, so the
    log is a verbatim copy: carriage-return progress lines and bytes that are
    not valid UTF-8 are kept as they are. The log is flushed after every chunk
    so nothing is lost if the run is interrupted. The wall-clock duration is
    appended once the process exits.

    Parameters
    ----------
    cmd : sequence of str
        Command and its arguments.
    log_path : str or Path
        Log file receiving the output.
    mirror : binary file-like or bool, optional
        Stream the output is mirrored to. ``None`` or ``True`` means
        ``sys.stdout.buffer``; ``False`` keeps the output in the log only.
    append : bool
        Append to an existing log instead of truncating it.

    Returns
    -------
    int
        The process exit status. Non-zero statuses are returned, not raised.
    """
    if mirror is None or mirror is True:
        mirror = sys.stdout.buffer
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug("Running command: %s", " ".join(cmd))
    start = time.time()
    with open(log_path, "ab" if append else "wb") as log_f:
        process = subprocess.Popen(list(cmd), stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        try:
            for chunk in iter(lambda: process.stdout.read1(CHUNK_SIZE), b""):
                if mirror is not False:
                    mirror.write(chunk)
                    mirror.flush()
                log_f.write(chunk)
                log_f.flush()
        finally:
            process.stdout.close()
            returncode = process.wait()

        elapsed = time.time() - start
        log_f.write(f"\nreal\t{format_duration(elapsed)}\n".encode("ascii"))

    if returncode != 0:
        logger.error("Command failed with status %d: %s", returncode, " ".join(cmd))
    else:
        logger.debug("Command completed in %.1fs", elapsed)
    return returncode


def decompress_gzip(source: Union[str, Path], destination: Union[str, Path]) -> bool:
    """
    Decompress a gzip (or bgzip) file, skipping the work if it is already done.

    The destination counts as current when it is non-empty and not older than
    the archive.

    Parameters
    ----------
    source : str or Path
        The ``.gz`` archive.
    destination : str or Path
        Where the uncompressed content is written.

    Returns
    -------
    bool
        True if the file was written, False if the existing one was reused.
    """
    source = Path(source)
    destination = Path(destination)

    if destination.is_file():
        dest_stat = destination.stat()
        if dest_stat.st_size > 0 and dest_stat.st_mtime >= source.stat().st_mtime:
            logger.info(f"Uncompressed file {destination} is current, skipping decompression")
            return False

    logger.info(f"Decompressing {source} -> {destination}")
    tmp_path = destination.with_name(destination.name + ".tmp")
    with gzip.open(source, "rb") as src, open(tmp_path, "wb") as dst:
        shutil.copyfileobj(src, dst, length=1024 * 1024)
    os.replace(tmp_path, destination)
    return True
