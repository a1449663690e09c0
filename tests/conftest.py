"""
Shared test fixtures for Gmail Purge tests
"""

import base64
from datetime import date
from typing import Callable, Dict, List, Optional

import pytest
from googleapiclient.errors import HttpError

from gmail_purge.mailbox import GmailMailbox
from gmail_purge.models import PurgeConfig


# === Mock Gmail API Service ===

class MockExecute:
    """Mock for the .execute() call that runs the stored action"""
    def __init__(self, action: Callable):
        self._action = action

    def execute(self):
        return self._action()


class MockHttpResponse:
    """Mock HTTP response for HttpError"""
    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason


def make_http_error(status: int, content: bytes = b'error') -> HttpError:
    """Build a real HttpError the way googleapiclient raises it"""
    reasons = {403: 'Forbidden', 404: 'Not Found', 429: 'Too Many Requests', 500: 'Internal Server Error'}
    return HttpError(resp=MockHttpResponse(status, reasons.get(status, 'Error')), content=content)


def raw_message(message_id: str) -> str:
    """base64url encoded RFC 822 message, padding stripped like Gmail does"""
    text = f"From: sender@example.com\r\nSubject: Message {message_id}\r\n\r\nBody of {message_id}\r\n"
    return base64.urlsafe_b64encode(text.encode('utf-8')).decode('ascii').rstrip('=')


def full_message(message_id: str) -> dict:
    """Message in the shape of format=full"""
    return {
        'id': message_id,
        'threadId': f'thread_{message_id}',
        'labelIds': ['INBOX'],
        'snippet': f'Body of {message_id}',
        'payload': {
            'headers': [
                {'name': 'From', 'value': 'sender@example.com'},
                {'name': 'Subject', 'value': f'Message {message_id}'}
            ]
        }
    }


class MockMessages:
    """Mock for users().messages() over a fixed list of pages"""

    def __init__(self, service: 'MockGmailService'):
        self._service = service

    def list(self, userId: str, q: str = None, maxResults: int = 100, pageToken: Optional[str] = None):
        def action():
            self._service.calls.append(('list', pageToken))
            self._service.list_requests.append({'q': q, 'maxResults': maxResults, 'pageToken': pageToken})
            self._service.maybe_fail('list')

            index = int(pageToken) if pageToken else 0
            page_ids = self._service.pages[index]

            result = {'resultSizeEstimate': len(page_ids)}
            # Gmail leaves out 'messages' entirely for an empty page
            if page_ids:
                result['messages'] = [{'id': mid, 'threadId': f'thread_{mid}'} for mid in page_ids]
            if index + 1 < len(self._service.pages):
                result['nextPageToken'] = str(index + 1)
            return result

        return MockExecute(action)

    def get(self, userId: str, id: str, format: str = None):
        def action():
            self._service.calls.append(('get', id))
            self._service.get_formats.append(format)
            self._service.maybe_fail('get', id)
            if format == 'raw':
                return {'id': id, 'threadId': f'thread_{id}', 'raw': raw_message(id)}
            return full_message(id)

        return MockExecute(action)

    def batchDelete(self, userId: str, body: Dict):
        def action():
            ids = list(body['ids'])
            self._service.calls.append(('batchDelete', tuple(ids)))
            self._service.maybe_fail('batchDelete')
            if self._service.on_batch_delete:
                self._service.on_batch_delete(ids)
            self._service.deleted_ids.extend(ids)
            return ''

        return MockExecute(action)


class MockUsers:
    """Mock for service.users()"""
    def __init__(self, service: 'MockGmailService'):
        self._messages = MockMessages(service)

    def messages(self):
        return self._messages


class MockGmailService:
    """Mock Gmail API service serving pages of message ids"""

    def __init__(
        self,
        pages: List[List[str]],
        rate_limited: Optional[Dict[str, int]] = None,
        failures: Optional[Dict[str, int]] = None,
        fail_ids: Optional[Dict[str, int]] = None
    ):
        self.pages = pages or [[]]
        # op name -> number of 429s to raise before succeeding
        self.rate_limited = dict(rate_limited or {})
        # op name -> HTTP status raised on every call
        self.failures = dict(failures or {})
        # message id -> HTTP status raised when fetching it
        self.fail_ids = dict(fail_ids or {})

        self.calls: List[tuple] = []
        self.list_requests: List[dict] = []
        self.get_formats: List[str] = []
        self.deleted_ids: List[str] = []
        self.on_batch_delete: Optional[Callable[[List[str]], None]] = None

    def users(self):
        return MockUsers(self)

    def maybe_fail(self, op: str, message_id: Optional[str] = None) -> None:
        if message_id is not None and message_id in self.fail_ids:
            raise make_http_error(self.fail_ids[message_id])
        if op in self.failures:
            raise make_http_error(self.failures[op])
        if self.rate_limited.get(op, 0) > 0:
            self.rate_limited[op] -= 1
            raise make_http_error(429, b'{"error": {"message": "Too many requests"}}')

    def calls_of(self, op: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == op]


# === Time helpers ===

class FakeSleep:
    """Async sleep replacement that records requested delays"""
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Monotonic clock that only moves when told to"""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_pages(page_count: int, per_page: int, prefix: str = 'msg') -> List[List[str]]:
    """Pages of distinct message ids"""
    return [
        [f'{prefix}_{page}_{i}' for i in range(per_page)]
        for page in range(page_count)
    ]


# === Fixtures ===

@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def two_page_service() -> MockGmailService:
    """Two pages of three messages each"""
    return MockGmailService(make_pages(2, 3))


@pytest.fixture
def mailbox(two_page_service) -> GmailMailbox:
    return GmailMailbox(two_page_service)


@pytest.fixture
def archive_config(tmp_path) -> PurgeConfig:
    """Archiving enabled, live deletes"""
    return PurgeConfig(
        cutoff_date=date(2020, 1, 1),
        archive_enabled=True,
        archive_directory=tmp_path / 'archive'
    )


@pytest.fixture
def no_archive_config(tmp_path) -> PurgeConfig:
    """Archiving disabled, live deletes"""
    return PurgeConfig(
        cutoff_date=date(2020, 1, 1),
        archive_enabled=False,
        archive_directory=tmp_path / 'archive'
    )


@pytest.fixture
def service_factory():
    """Builds a MockGmailService from pages and failure settings"""
    return MockGmailService


@pytest.fixture
def pages_factory():
    """Builds pages of distinct message ids"""
    return make_pages


@pytest.fixture
def http_error_factory():
    """Builds HttpErrors with a given status"""
    return make_http_error


@pytest.fixture
def message_factory():
    """Builds messages in the shape of format=full"""
    return full_message
