"""Observability hooks for a reservation run."""

from __future__ import annotations

import structlog

from .models import ReservationState, RunResult, SkipReason

LOGGER = structlog.get_logger(__name__)


class RunObserver:
    """Receives progress events from the orchestrator. Every hook is a no-op."""

    def step_started(self, step: ReservationState) -> None:
        pass

    def candidate_skipped(self, kind: str, label: str, reason: SkipReason) -> None:
        pass

    def strategy_failed(self, label: str, strategy_name: str, error: BaseException) -> None:
        pass

    def run_finished(self, result: RunResult) -> None:
        pass


class StructlogObserver(RunObserver):
    """Renders run events as structlog events."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or LOGGER

    def step_started(self, step: ReservationState) -> None:
        self._logger.info("step.started", step=step.value)

    def candidate_skipped(self, kind: str, label: str, reason: SkipReason) -> None:
        self._logger.info("candidate.skipped", kind=kind, label=label, reason=reason.value)

    def strategy_failed(self, label: str, strategy_name: str, error: BaseException) -> None:
        self._logger.warning(
            "click.strategy_failed",
            label=label,
            strategy=strategy_name,
            error=str(error),
        )

    def run_finished(self, result: RunResult) -> None:
        if result.succeeded:
            self._logger.info("run.finished", **result.to_payload())
        else:
            self._logger.error("run.failed", **result.to_payload())
