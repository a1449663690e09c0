"""
Batch Processor - Walks result pages, archiving then bulk-deleting each one
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Dict, Optional

from gmail_purge.archiver import MessageArchiver
from gmail_purge.backoff import BackoffExecutor
from gmail_purge.errors import RunInterrupted
from gmail_purge.mailbox import GmailMailbox, PAGE_SIZE
from gmail_purge.models import BatchResult, PurgeConfig, RunSummary


logger = logging.getLogger(__name__)

BATCH_PAUSE_SECONDS = 20.0


class BatchProcessor:
    """Handles the page-by-page purge loop"""

    def __init__(
        self,
        mailbox: GmailMailbox,
        executor: BackoffExecutor,
        config: PurgeConfig,
        archiver: Optional[MessageArchiver] = None,
        progress_callback: Optional[Callable] = None,
        stop_event: Optional[threading.Event] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        page_size: int = PAGE_SIZE,
        batch_pause: float = BATCH_PAUSE_SECONDS
    ):
        self.mailbox = mailbox
        self.executor = executor
        self.config = config
        self.archiver = archiver
        self.progress_callback = progress_callback
        self.stop_event = stop_event
        self.sleep = sleep
        self.page_size = page_size
        self.batch_pause = batch_pause

        # Exposed so the driver can report partial totals after a failure
        self.summary = RunSummary()

    # === Main Entry Point ===

    async def run_batches(self) -> RunSummary:
        """Process pages until the listing has no next page token"""
        await self._report_progress("run_started", {
            "query": self.config.query,
            "archive_enabled": self.archiver is not None,
            "dry_run": self.config.dry_run
        })

        page_token = None

        try:
            while True:
                if self._stop_requested():
                    raise RunInterrupted("Stop requested before next batch")

                result = await self.process_batch(page_token)

                if not result.next_page_token:
                    break
                page_token = result.next_page_token

                await self._report_progress("batch_pause", {"seconds": self.batch_pause})
                await self.sleep(self.batch_pause)

        except RunInterrupted as interrupt:
            self.summary.interrupted = True
            logger.warning(f"Run interrupted: {interrupt}")
            await self._report_progress("run_interrupted", self._summary_data())
            return self.summary

        logger.info(
            f"Run complete: {self.summary.total_batches} batches, "
            f"{self.summary.total_processed} messages processed"
        )
        await self._report_progress("run_completed", self._summary_data())
        return self.summary

    # === Batch Processing ===

    async def process_batch(self, page_token: Optional[str]) -> BatchResult:
        """Fetch one page, archive its messages if enabled, then delete them in one call"""
        page = await self.executor.execute(
            lambda: self.mailbox.list_messages(self.config.query, self.page_size, page_token),
            "list messages"
        )

        await self._report_progress("page_fetched", {
            "message_count": len(page.messages),
            "has_next_page": page.next_page_token is not None
        })

        if not page.messages:
            logger.debug("Empty page")
            return BatchResult(processed_count=0, next_page_token=page.next_page_token)

        message_ids = [message.id for message in page.messages]

        # Sequential on purpose: every message is on disk before the delete below
        if self.archiver:
            for message_id in message_ids:
                path = await self.archiver.archive(message_id)
                self.summary.total_archived += 1
                await self._report_progress("message_archived", {
                    "message_id": message_id,
                    "path": str(path)
                })

        if self.config.dry_run:
            await self._report_progress("would_delete", {"message_count": len(message_ids)})
        else:
            await self.executor.execute(
                lambda: self.mailbox.batch_delete(message_ids),
                f"batch delete of {len(message_ids)} messages"
            )
            await self._report_progress("batch_deleted", {"message_count": len(message_ids)})

        self.summary.total_batches += 1
        self.summary.total_processed += len(message_ids)

        logger.info(
            f"Batch {self.summary.total_batches}: {len(message_ids)} messages "
            f"({self.summary.total_processed} total)"
        )
        await self._report_progress("batch_completed", {
            "batch": self.summary.total_batches,
            "message_count": len(message_ids),
            **self._summary_data()
        })

        return BatchResult(processed_count=len(message_ids), next_page_token=page.next_page_token)

    # === Progress ===

    async def _report_progress(self, event: str, data: Dict) -> None:
        """Send progress update if callback is set"""
        if self.progress_callback:
            await self.progress_callback(event, data)

    def _stop_requested(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def _summary_data(self) -> Dict:
        return {
            "total_batches": self.summary.total_batches,
            "total_processed": self.summary.total_processed,
            "total_archived": self.summary.total_archived
        }
