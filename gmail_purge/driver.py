"""
Purge Driver - Wires the pipeline together and is the single error boundary of a run
"""

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Optional

from gmail_purge.archiver import MessageArchiver
from gmail_purge.backoff import BackoffExecutor
from gmail_purge.batch_processor import BatchProcessor
from gmail_purge.mailbox import GmailMailbox
from gmail_purge.models import PurgeConfig, RunResult
from gmail_purge.quota import QuotaTracker


logger = logging.getLogger(__name__)


class PurgeDriver:
    """Runs a purge to completion and reports, never raises"""

    def __init__(
        self,
        mailbox: GmailMailbox,
        config: PurgeConfig,
        progress_callback: Optional[Callable] = None,
        stop_event: Optional[threading.Event] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.mailbox = mailbox
        self.config = config
        self.progress_callback = progress_callback
        self.stop_event = stop_event

        self.quota = QuotaTracker(clock=clock)
        self.executor = BackoffExecutor(self.quota, sleep=sleep, stop_event=stop_event)

        self.archiver = None
        if config.archive_enabled:
            self.archiver = MessageArchiver(
                mailbox,
                self.executor,
                config.archive_directory,
                config.archive_format
            )

        self.processor = BatchProcessor(
            mailbox,
            self.executor,
            config,
            archiver=self.archiver,
            progress_callback=progress_callback,
            stop_event=stop_event,
            sleep=sleep
        )

    async def run(self) -> RunResult:
        """Drive the batch processor; any escaping error is reported and returned"""
        try:
            if self.archiver:
                self.config.archive_directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"Archiving messages to {self.config.archive_directory}")

            logger.info(f"Searching for messages matching '{self.config.query}'")
            summary = await self.processor.run_batches()
            return RunResult(summary=summary)

        except Exception as error:
            summary = self.processor.summary
            logger.error(
                f"Purge aborted after {summary.total_batches} batches "
                f"({summary.total_processed} messages): {error}",
                exc_info=True
            )
            await self._report_failure(error)
            return RunResult(summary=summary, error=error)

    async def _report_failure(self, error: Exception) -> None:
        """Send run_failed; a failing observer is logged so the original error is kept"""
        if not self.progress_callback:
            return
        summary = self.processor.summary
        try:
            await self.progress_callback("run_failed", {
                "error": str(error),
                "error_type": type(error).__name__,
                "total_batches": summary.total_batches,
                "total_processed": summary.total_processed,
                "total_archived": summary.total_archived
            })
        except Exception as report_error:
            logger.error(f"Could not report run failure: {report_error}", exc_info=True)
