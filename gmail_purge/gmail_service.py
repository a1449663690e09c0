#!/usr/bin/env python3
"""
Gmail Service - Facade for Gmail access
Handles authentication and interrupts, hands out the mailbox used by the purge
"""

import signal
import sys
import logging
import threading
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from gmail_purge.errors import PurgeError
from gmail_purge.mailbox import GmailMailbox


logger = logging.getLogger(__name__)

# batchDelete needs full mail access. If modifying these scopes, delete the token file.
SCOPES = ['https://mail.google.com/']


class GmailService:
    """Facade for Gmail - handles auth, Ctrl+C, and builds the mailbox"""

    def __init__(
        self,
        credentials_path: str = 'credentials.json',
        token_path: str = 'token.json',
        oauth_port: int = 0,
        handle_signals: bool = True
    ):
        # Auth-related
        self.credentials_path = credentials_path
        self.token_path = token_path
        self.oauth_port = oauth_port
        self.service = None

        # Signal handling
        self.stop_event = threading.Event()
        if handle_signals:
            signal.signal(signal.SIGINT, self._handle_interrupt)

    def _handle_interrupt(self, signum, frame):
        """Handle Ctrl+C gracefully: first press stops before the next request, second exits"""
        if not self.stop_event.is_set():
            logger.warning("Interrupt received, stopping before the next Gmail request...")
            self.stop_event.set()
        else:
            logger.warning("Force quit requested, exiting immediately")
            sys.exit(1)

    # === Authentication ===

    def authenticate(self) -> bool:
        """Load or obtain credentials and build the Gmail API service"""
        try:
            token_path = Path(self.token_path)
            creds = None

            if token_path.exists():
                creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

            if not creds or not creds.valid:
                if creds and creds.expired and creds.refresh_token:
                    logger.info("Refreshing expired credentials")
                    creds.refresh(Request())
                else:
                    if not Path(self.credentials_path).exists():
                        logger.error(f"Credentials file not found: {self.credentials_path}")
                        return False
                    logger.info("No valid token found, starting OAuth flow in the browser")
                    flow = InstalledAppFlow.from_client_secrets_file(self.credentials_path, SCOPES)
                    creds = flow.run_local_server(port=self.oauth_port)

                token_path.parent.mkdir(parents=True, exist_ok=True)
                token_path.write_text(creds.to_json())
                logger.info(f"Token stored to {token_path}")

            self.service = build('gmail', 'v1', credentials=creds)
            logger.info("Successfully authenticated with Gmail")
            return True

        except Exception as error:
            logger.error(f"Authentication failed: {error}")
            return False

    # === Mailbox ===

    def mailbox(self) -> GmailMailbox:
        """Mailbox over the authenticated service"""
        if not self.service:
            raise PurgeError("Not authenticated. Call authenticate() first.")
        return GmailMailbox(self.service)
