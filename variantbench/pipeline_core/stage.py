"""
Stage - base class of every step in a benchmark run.

A stage names itself, lists the stages it needs, and implements ``_process``.
Calling the stage checks its dependencies, runs it once per context, times it
and makes sure any failure leaves as a PipelineError tagged with the stage name.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Set

from .context import PipelineContext
from .error_handling import PipelineError, StageExecutionError

logger = logging.getLogger(__name__)


class Stage(ABC):
    """One step of a benchmark run.

    Subclasses provide ``name`` and ``_process`` and may override
    ``dependencies``, ``soft_dependencies``, ``description``
    and ``validate_prerequisites``.
    """

    def __init__(self):
        self._subtask_times: Dict[str, float] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage identifier; also used for dependency lookups and log file names."""

    @property
    def dependencies(self) -> Set[str]:
        """Stages that must have completed before this one may run."""
        return set()

    @property
    def soft_dependencies(self) -> Set[str]:
        """Stages to run first when they are part of the run; absent ones are ignored."""
        return set()

    @property
    def description(self) -> str:
        """Short text used in log messages."""
        return f"Stage: {self.name}"

    def __call__(self, context: PipelineContext) -> PipelineContext:
        """Run the stage against ``context``.

        Parameters
        ----------
        context : PipelineContext
            Shared run state

        Returns
        -------
        PipelineContext
            The context, with this stage marked complete

        Raises
        ------
        RuntimeError
            If a hard dependency has not completed
        PipelineError
            If the stage fails. Other exceptions arrive wrapped in
            StageExecutionError.
        """
        pending = [dep for dep in sorted(self.dependencies) if not context.is_complete(dep)]
        if pending:
            raise RuntimeError(
                f"Stage '{self.name}' cannot run before: {', '.join(pending)}"
            )

        if context.is_complete(self.name):
            logger.info(f"Stage '{self.name}' already complete, skipping")
            return context

        logger.info(f"Executing {self.description}")
        started = time.time()
        try:
            self.validate_prerequisites(context)
            context = self._process(context)
        except PipelineError as e:
            if e.stage is None:
                e.stage = self.name
            logger.error(f"Stage '{self.name}' failed after {time.time() - started:.1f}s: {e}")
            raise
        except Exception as e:
            logger.error(f"Stage '{self.name}' failed after {time.time() - started:.1f}s: {e}")
            raise StageExecutionError(self.name, e) from e

        context.mark_complete(self.name)
        logger.info(f"Stage '{self.name}' completed successfully in {time.time() - started:.1f}s")
        return context

    @abstractmethod
    def _process(self, context: PipelineContext) -> PipelineContext:
        """Do the work of the stage and return the updated context."""

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Raise if the context lacks something ``_process`` needs."""

    def _start_subtask(self, subtask_name: str) -> float:
        logger.debug(f"Stage '{self.name}': starting {subtask_name}")
        return time.time()

    def _end_subtask(self, subtask_name: str, start_time: float) -> None:
        elapsed = time.time() - start_time
        self._subtask_times[subtask_name] = elapsed
        logger.debug(f"Stage '{self.name}': {subtask_name} took {elapsed:.1f}s")

    @property
    def subtask_times(self) -> Dict[str, float]:
        """Seconds spent in each timed subtask, by subtask name."""
        return dict(self._subtask_times)

    def __repr__(self) -> str:
        deps = f", depends_on={sorted(self.dependencies)}" if self.dependencies else ""
        return f"{self.__class__.__name__}(name='{self.name}'{deps})"
