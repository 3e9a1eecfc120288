"""
PipelineRunner - orders stages by their dependencies and runs them one by one.

Soft dependencies only influence the order when the named stage is part of
the run. The first stage that raises ends the run and its error propagates.
"""

import logging
import time
from typing import Dict, List, Set

from .context import PipelineContext
from .stage import Stage

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Sequential, fail-fast stage runner."""

    def __init__(self):
        self._execution_times: Dict[str, float] = {}
        self._subtask_times: Dict[str, Dict[str, float]] = {}

    @property
    def execution_times(self) -> Dict[str, float]:
        """Seconds spent in each stage that was started, by stage name."""
        return dict(self._execution_times)

    def run(self, stages: List[Stage], context: PipelineContext) -> PipelineContext:
        """Run ``stages`` against ``context`` in dependency order.

        Parameters
        ----------
        stages : list of Stage
            Stages of the run, in their preferred order
        context : PipelineContext
            Run state passed to the first stage

        Returns
        -------
        PipelineContext
            Context returned by the last stage

        Raises
        ------
        ValueError
            If the stages cannot be ordered
        """
        plan = self._create_execution_plan(stages)
        logger.info(f"Running {len(plan)} stages: {' -> '.join(s.name for s in plan)}")

        started = time.time()
        try:
            for stage in plan:
                context = self._execute_stage(stage, context)
        finally:
            self._log_execution_summary()
        logger.info(f"All stages finished in {time.time() - started:.1f}s")
        return context

    def dry_run(self, stages: List[Stage]) -> List[str]:
        """Names of ``stages`` in the order ``run`` would execute them."""
        return [stage.name for stage in self._create_execution_plan(stages)]

    def _create_execution_plan(self, stages: List[Stage]) -> List[Stage]:
        """Topologically sort ``stages``.

        Whenever several stages are ready, the one listed first goes next, so
        the same input always gives the same order.
        """
        by_name: Dict[str, Stage] = {}
        for stage in stages:
            if stage.name in by_name:
                raise ValueError(f"Duplicate stage name: '{stage.name}'")
            by_name[stage.name] = stage

        waits_for: Dict[str, Set[str]] = {}
        for stage in stages:
            missing = stage.dependencies - by_name.keys()
            if missing:
                raise ValueError(
                    f"Stage '{stage.name}' depends on stages not in the pipeline: "
                    f"{sorted(missing)}"
                )
            waits_for[stage.name] = set(stage.dependencies) | (
                stage.soft_dependencies & by_name.keys()
            )

        plan: List[Stage] = []
        placed: Set[str] = set()
        remaining = list(stages)
        while remaining:
            ready = next((s for s in remaining if waits_for[s.name] <= placed), None)
            if ready is None:
                blocked = sorted(s.name for s in remaining)
                for name in blocked:
                    logger.debug(f"'{name}' waits for {sorted(waits_for[name] - placed)}")
                raise ValueError(f"Circular dependency among stages: {blocked}")
            plan.append(ready)
            placed.add(ready.name)
            remaining.remove(ready)
        return plan

    def _execute_stage(self, stage: Stage, context: PipelineContext) -> PipelineContext:
        started = time.time()
        try:
            return stage(context)
        finally:
            self._execution_times[stage.name] = time.time() - started
            if stage.subtask_times:
                self._subtask_times[stage.name] = stage.subtask_times

    def _log_execution_summary(self) -> None:
        if not self._execution_times:
            return

        total = sum(self._execution_times.values())
        logger.info("Time per stage:")
        for name, seconds in self._execution_times.items():
            share = 100 * seconds / total if total else 0.0
            logger.info(f"  {name:<28} {seconds:8.1f}s {share:5.1f}%")
            for subtask, sub_seconds in self._subtask_times.get(name, {}).items():
                logger.info(f"    {subtask:<26} {sub_seconds:8.1f}s")
        logger.info(f"  {'total':<28} {total:8.1f}s")
