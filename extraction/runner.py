"""
Batch runner - owns the control flow of one refresh.

Batches run strictly one after another, with an optional fixed pause before
every batch after the first to stay under the vendor's request rate. A
failing batch contributes no records and the run goes on; a quota error
aborts the whole run.
"""

import asyncio
import time
from collections.abc import Sequence
from typing import Any, Awaitable, Callable, List, Optional

from extraction.batching import partition, progress_percent
from extraction.cleaning import parse_records
from extraction.client import SearchModelClient
from extraction.error_handling import ErrorCompactor, ErrorHandler, is_quota_error
from extraction.models import BatchOutcome, EnrichmentTask, RefreshRun, RunnerState
from extraction.prompts import build_prompt
from extraction.reconcile import reconcile
from portfolio_radar.utils.errors import (
    InvalidSubjectsError,
    QuotaExceededError,
    RefreshFailedError,
    ResponseParseError,
)
from portfolio_radar.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


class BatchRunner:
    """
    Run one enrichment task over a subject list.

    Each call to ``run`` owns its batches and accumulator; the runner keeps
    only the last run's state for inspection.
    """

    def __init__(
        self,
        client: SearchModelClient,
        task: EnrichmentTask,
        max_batch_size: int = 1,
        batch_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            client: Search model client (injected, never built here)
            task: What to ask and how to merge answers
            max_batch_size: Subjects per request
            batch_delay: Seconds to wait before every batch after the first
            sleep: Awaitable delay, replaceable in tests
            clock: Monotonic time source, replaceable in tests
        """
        self.client = client
        self.task = task
        self.max_batch_size = max_batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep
        self._clock = clock
        self.last_run: Optional[RefreshRun] = None

    @property
    def state(self) -> RunnerState:
        return self.last_run.state if self.last_run else RunnerState.IDLE

    def _check_contract(self, subjects: Any) -> None:
        if isinstance(self.max_batch_size, bool) or not isinstance(self.max_batch_size, int) or self.max_batch_size < 1:
            raise InvalidSubjectsError(f"max_batch_size must be a positive integer, got {self.max_batch_size!r}")
        if self.batch_delay < 0:
            raise InvalidSubjectsError(f"batch_delay must not be negative, got {self.batch_delay}")
        if isinstance(subjects, (str, bytes)) or not isinstance(subjects, Sequence):
            raise InvalidSubjectsError("subjects must be a list", {"type": type(subjects).__name__})

        model = self.task.subject_model
        for position, subject in enumerate(subjects):
            if not isinstance(subject, model):
                raise InvalidSubjectsError(
                    f"Subject at position {position} is not a {model.__name__}",
                    {"position": position, "type": type(subject).__name__},
                )
            if not self.task.subject_key(subject).strip():
                raise InvalidSubjectsError(
                    f"Subject at position {position} has no {self.task.subject_key_field}",
                    {"position": position},
                )

    async def run(self, subjects: Sequence[Any], on_progress: Optional[ProgressCallback] = None) -> List[Any]:
        """
        Enrich ``subjects`` and return the merged list.

        Args:
            subjects: Subjects of the task's subject model
            on_progress: Called with 0-100 after each finished batch

        Returns:
            New list, same length and order as ``subjects``

        Raises:
            InvalidSubjectsError: input violates the contract; nothing ran
            QuotaExceededError: the vendor rejected a batch on quota
            RefreshFailedError: any other failure outside batch handling
        """
        self._check_contract(subjects)

        batches = partition(subjects, self.max_batch_size)
        run = RefreshRun(task=self.task.name, total_batches=len(batches))
        self.last_run = run
        error_handler = ErrorHandler()

        run.state = RunnerState.RUNNING
        run.started_at = self._clock()

        with LogContext(task=self.task.name, run_id=run.id):
            logger.info(
                f"Refreshing {len(subjects)} {self.task.name} subject(s) in {len(batches)} batch(es)"
            )
            try:
                for index, batch in enumerate(batches):
                    if index > 0 and self.batch_delay > 0:
                        await self._sleep(self.batch_delay)

                    outcome = await self._run_batch(index, batch, run, error_handler)
                    run.outcomes.append(outcome)
                    run.completed_batches += 1
                    run.progress = progress_percent(run.completed_batches, run.total_batches)

                    if on_progress:
                        on_progress(run.progress)

                merged = reconcile(subjects, run.records, self.task)

            except QuotaExceededError as e:
                run.state = RunnerState.FAILED
                logger.error(
                    f"Quota exceeded on batch {run.completed_batches + 1}/{run.total_batches}, aborting",
                    extra={"reason": e.reason},
                )
                raise
            except Exception as e:
                run.state = RunnerState.FAILED
                logger.exception(f"Refresh failed: {ErrorCompactor.compact_error(e)}")
                raise RefreshFailedError(self.task.name, str(e)) from e
            finally:
                run.finished_at = self._clock()
                run.errors = error_handler.error_history

            run.state = RunnerState.DONE
            logger.info(
                f"Refresh done: {len(run.records)} record(s), "
                f"{len(run.failed_batches)} of {run.total_batches} batch(es) without data"
            )

        return merged

    async def _run_batch(
        self,
        index: int,
        batch: List[Any],
        run: RefreshRun,
        error_handler: ErrorHandler,
    ) -> BatchOutcome:
        labels = [self.task.subject_label(subject) for subject in batch]
        prompt = build_prompt(labels, self.task)
        started = self._clock()

        with LogContext(batch=index):
            try:
                text = await self.client.generate(prompt)
                logger.debug(f"Batch {index} raw response: {text!r}")
                raw_records = parse_records(text)
            except QuotaExceededError:
                raise
            except Exception as e:
                if not isinstance(e, ResponseParseError) and is_quota_error(e):
                    raise QuotaExceededError(str(e)) from e
                error = error_handler.record_error(f"batch {index}", e)
                return BatchOutcome(
                    index=index,
                    size=len(batch),
                    error=error["message"],
                    duration_seconds=self._clock() - started,
                )

            records = [r for r in (self.task.validate_record(raw) for raw in raw_records) if r is not None]
            if len(records) < len(raw_records):
                logger.warning(f"Batch {index}: dropped {len(raw_records) - len(records)} invalid record(s)")
            if not records:
                logger.warning(f"Batch {index} returned no data for: {', '.join(labels)}")

            run.records.extend(records)
            return BatchOutcome(
                index=index,
                size=len(batch),
                records=len(records),
                duration_seconds=self._clock() - started,
            )
