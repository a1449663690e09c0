"""
Shared data models for Gmail Purge
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional


ARCHIVE_FORMATS = ('json', 'eml')


@dataclass(frozen=True)
class PurgeConfig:
    """Resolved configuration for one purge run"""
    cutoff_date: date
    archive_enabled: bool = True
    archive_directory: Path = Path('email_archive')
    archive_format: str = 'json'
    dry_run: bool = False

    @property
    def query(self) -> str:
        """Gmail search query selecting messages strictly before the cutoff"""
        return f"before:{self.cutoff_date:%Y/%m/%d}"


@dataclass
class QuotaState:
    """Request counters for the current day and the current minute window"""
    requests_today: int = 0
    requests_this_minute: int = 0
    minute_window_start: float = 0.0


@dataclass(frozen=True)
class MessageRef:
    """Identifier of a listed message"""
    id: str


@dataclass
class MessagePage:
    """One page of a message listing"""
    messages: List[MessageRef] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass
class BatchResult:
    """Outcome of processing one page"""
    processed_count: int
    next_page_token: Optional[str] = None


@dataclass
class RunSummary:
    """Totals accumulated across a run"""
    total_batches: int = 0
    total_processed: int = 0
    total_archived: int = 0
    interrupted: bool = False


@dataclass
class RunResult:
    """What the driver hands back: the summary plus the error that stopped the run, if any"""
    summary: RunSummary
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
