"""
Message Archiver - Saves full messages to disk before they are deleted
"""

import base64
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from gmail_purge.backoff import BackoffExecutor
from gmail_purge.errors import ArchiveError
from gmail_purge.mailbox import GmailMailbox
from gmail_purge.models import ARCHIVE_FORMATS


logger = logging.getLogger(__name__)


class MessageArchiver:
    """Fetches a message and writes it to <archive_directory>/<message id>.<format>"""

    def __init__(
        self,
        mailbox: GmailMailbox,
        executor: BackoffExecutor,
        archive_directory: Path,
        archive_format: str = 'json'
    ):
        if archive_format not in ARCHIVE_FORMATS:
            raise ValueError(f"Unknown archive format: {archive_format}")
        self.mailbox = mailbox
        self.executor = executor
        self.archive_directory = Path(archive_directory)
        self.archive_format = archive_format

    async def archive(self, message_id: str) -> Path:
        """Fetch one message and persist it, returns the archive path"""
        target = self.path_for(message_id)
        gmail_format = 'raw' if self.archive_format == 'eml' else 'full'

        message = await self.executor.execute(
            lambda: self.mailbox.get_message(message_id, format=gmail_format),
            f"get message {message_id}"
        )

        self._write_atomic(target, self._serialize(message))
        logger.debug(f"Archived message {message_id} to {target}")
        return target

    def path_for(self, message_id: str) -> Path:
        """Archive path for a message id; the same id always maps to the same file"""
        if not message_id or Path(message_id).name != message_id or message_id in ('.', '..'):
            raise ArchiveError(f"Message id {message_id!r} is not usable as a file name")
        return self.archive_directory / f"{message_id}.{self.archive_format}"

    # === Serialization ===

    def _serialize(self, message: Dict[str, Any]) -> bytes:
        if self.archive_format == 'eml':
            raw = message.get('raw')
            if raw is None:
                raise ArchiveError(f"Message {message.get('id')} has no raw content")
            # Gmail strips base64url padding
            return base64.urlsafe_b64decode(raw + '=' * (-len(raw) % 4))
        return json.dumps(message, indent=2, sort_keys=True, ensure_ascii=False).encode('utf-8')

    @staticmethod
    def _write_atomic(target: Path, content: bytes) -> None:
        temp_file = target.with_name(target.name + '.tmp')
        try:
            temp_file.write_bytes(content)
            os.replace(temp_file, target)
        except OSError:
            temp_file.unlink(missing_ok=True)
            raise
