"""
Host resource checks for a benchmark run.

Detects CPUs (honouring SLURM/PBS allocations and CPU affinity) and free disk
space with psutil. The checks only warn: the caller manages its own shards
and a run may still fit on a nearly full disk.
"""

import logging
import os
from pathlib import Path
from typing import Union

import psutil

logger = logging.getLogger(__name__)


def detect_cpus() -> int:
    """Return the number of CPUs available to this process.

    Priority: SLURM_CPUS_PER_TASK, PBS_NUM_PPN, CPU affinity, psutil count.
    """
    for env_var in ("SLURM_CPUS_PER_TASK", "PBS_NUM_PPN"):
        value = os.getenv(env_var)
        if value:
            try:
                cpus = int(value)
            except ValueError:
                logger.warning(f"Ignoring non-integer {env_var}={value!r}")
                continue
            if cpus > 0:
                logger.debug(f"Using {cpus} CPUs from {env_var}")
                return cpus

    try:
        return len(psutil.Process().cpu_affinity())
    except (AttributeError, psutil.Error, OSError):
        # cpu_affinity is not available on every platform
        return psutil.cpu_count(logical=True) or 1


def free_disk_gb(path: Union[str, Path]) -> float:
    """Return free space in GB on the filesystem holding ``path``.

    The nearest existing parent is used when ``path`` does not exist yet.
    """
    existing = Path(path)
    while not existing.exists() and existing != existing.parent:
        existing = existing.parent
    return psutil.disk_usage(str(existing)).free / (1024**3)


def check_shards(num_shards: int) -> bool:
    """Warn when more shards are requested than there are CPUs.

    Returns
    -------
    bool
        True if the shard count fits the available CPUs
    """
    cpus = detect_cpus()
    if num_shards > cpus:
        logger.warning(
            f"num_shards={num_shards} exceeds the {cpus} CPUs available; "
            f"make_examples shards will compete for cores"
        )
        return False
    logger.info(f"num_shards={num_shards} on {cpus} available CPUs")
    return True


def check_disk_space(path: Union[str, Path], min_free_gb: float) -> bool:
    """Warn when the filesystem holding ``path`` has less than ``min_free_gb`` free.

    Returns
    -------
    bool
        True if there is enough space, or no minimum is configured
    """
    if min_free_gb <= 0:
        return True
    free_gb = free_disk_gb(path)
    if free_gb < min_free_gb:
        logger.warning(
            f"Only {free_gb:.1f}GB free under {path}; the case study needs about "
            f"{min_free_gb:.0f}GB for inputs and outputs"
        )
        return False
    logger.debug(f"{free_gb:.1f}GB free under {path}")
    return True
