"""
Mailbox - The three Gmail message operations the purge pipeline consumes
"""

import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from gmail_purge.errors import RateLimitedError, RemoteError
from gmail_purge.models import MessageRef, MessagePage


logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
RATE_LIMIT_REASONS = ('ratelimitexceeded', 'userratelimitexceeded', 'too many concurrent requests')


def is_rate_limit_error(error: HttpError) -> bool:
    """Check whether an HttpError means 'slow down' rather than a real failure"""
    status = getattr(error.resp, 'status', None)
    if status == 429:
        return True
    if status == 403:
        content = error.content
        if isinstance(content, bytes):
            content = content.decode('utf-8', errors='ignore')
        content = str(content).lower()
        return any(reason in content for reason in RATE_LIMIT_REASONS)
    return False


class GmailMailbox:
    """Thin wrapper over service.users().messages() that speaks in purge error types"""

    def __init__(self, service, user_id: str = 'me'):
        self.service = service  # Gmail API service object
        self.user_id = user_id

    def list_messages(
        self,
        query: str,
        page_size: int = PAGE_SIZE,
        page_token: Optional[str] = None
    ) -> MessagePage:
        """Fetch one page of message ids matching query"""
        results = self._execute(
            self.service.users().messages().list(
                userId=self.user_id,
                q=query,
                maxResults=page_size,
                pageToken=page_token
            ),
            "list messages"
        )

        messages = [MessageRef(id=m['id']) for m in results.get('messages', [])]
        return MessagePage(messages=messages, next_page_token=results.get('nextPageToken'))

    def get_message(self, message_id: str, format: str = 'full') -> Dict[str, Any]:
        """Fetch one message in the given Gmail format ('full' or 'raw')"""
        return self._execute(
            self.service.users().messages().get(
                userId=self.user_id,
                id=message_id,
                format=format
            ),
            f"get message {message_id}"
        )

    def batch_delete(self, message_ids: List[str]) -> None:
        """Permanently delete messages in one call (all or nothing)"""
        if not message_ids:
            return
        self._execute(
            self.service.users().messages().batchDelete(
                userId=self.user_id,
                body={'ids': list(message_ids)}
            ),
            f"batch delete of {len(message_ids)} messages"
        )

    # === Error translation ===

    @staticmethod
    def _execute(request, description: str):
        try:
            return request.execute()
        except HttpError as error:
            status = getattr(error.resp, 'status', None)
            if is_rate_limit_error(error):
                raise RateLimitedError(f"Rate limited during {description}", status=status) from error
            logger.debug(f"Gmail error during {description}: {error}")
            raise RemoteError(f"Gmail error during {description}: {error}", status=status) from error
        except RefreshError as error:
            raise RemoteError(f"Credentials expired during {description}: {error}") from error
        except (TransportError, httplib2.HttpLib2Error, OSError) as error:
            raise RemoteError(f"Network error during {description}: {error}") from error
