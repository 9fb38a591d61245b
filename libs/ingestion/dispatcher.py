# =============================================================================
# Dispatcher
# =============================================================================
# Single-flight driver for the ingestion worker inside one asyncio process.
# =============================================================================

"""
Single-flight dispatcher.

``run()`` checks and sets ``busy`` on the event loop with no await in
between, so two triggers can never both start a worker. While a run is
active further triggers are no-ops apart from raising a coalesced wake
flag: the active loop then makes one more claim attempt before going idle,
so a job created while the loop was concluding "no work" is not stranded.

The worker is synchronous (pymongo, minio); each ``run_once`` executes in a
thread via ``asyncio.to_thread`` so request handling keeps running.
"""

import asyncio
import logging
from typing import Optional

from libs.ingestion.worker import IngestionWorker, RunOutcome, RunReport

__all__ = ["Dispatcher"]

logger = logging.getLogger(__name__)

_CONTINUE = frozenset({RunOutcome.COMPLETED, RunOutcome.FAILED})


class Dispatcher:
    """
    Keeps at most one ingestion worker active and loops until no work remains.

    Args:
        worker: Worker processing one job per ``run_once`` call
        poll_interval: Seconds between idle polls once started; 0 disables
    """

    def __init__(self, worker: IngestionWorker, poll_interval: float = 0.0) -> None:
        self.worker = worker
        self.poll_interval = poll_interval
        self._busy = False
        self._wake = False
        self._tasks: set[asyncio.Task] = set()
        self._poller: Optional[asyncio.Task] = None
        self.last_report: Optional[RunReport] = None

    @property
    def busy(self) -> bool:
        return self._busy

    async def run(self) -> int:
        """
        Drain pending jobs one at a time.

        Returns immediately with 0 if a run is already active.

        Returns:
            Number of jobs taken to a terminal status by this run
        """
        if self._busy:
            self._wake = True
            return 0
        self._busy = True

        handled = 0
        try:
            while True:
                self._wake = False
                try:
                    report = await asyncio.to_thread(self.worker.run_once)
                except Exception:
                    logger.exception("Ingestion worker crashed; stopping this run")
                    break

                self.last_report = report
                if report.outcome in _CONTINUE:
                    handled += 1
                    continue
                if report.outcome == RunOutcome.NO_WORK and self._wake:
                    continue
                break
        finally:
            self._busy = False

        if handled:
            logger.info("Dispatcher idle after %d job(s)", handled)
        return handled

    def notify_job_created(self) -> Optional[asyncio.Task]:
        """
        Trigger a run from the event loop, e.g. right after a job is persisted.

        Returns:
            The scheduled task, or None if a run is already active
        """
        if self._busy:
            self._wake = True
            return None
        task = asyncio.get_running_loop().create_task(self.run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _poll(self) -> None:
        # Cancelling the poller must not cancel a run mid-job.
        while True:
            await asyncio.sleep(self.poll_interval)
            self.notify_job_created()

    def start(self) -> None:
        """Kick off an initial run and, if configured, the idle poll."""
        self.notify_job_created()
        if self.poll_interval > 0 and self._poller is None:
            self._poller = asyncio.get_running_loop().create_task(self._poll())
            logger.info("Idle poll every %.1fs", self.poll_interval)

    async def wait_idle(self) -> None:
        """Wait until every scheduled run has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel the idle poll and wait for the in-flight run to finish."""
        if self._poller is not None:
            self._poller.cancel()
            try:
                await self._poller
            except asyncio.CancelledError:
                pass
            self._poller = None
        await self.wait_idle()
        logger.info("Dispatcher stopped")
