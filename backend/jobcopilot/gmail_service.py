import base64
import logging
import os
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .schemas import InboundEmail

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]
MAX_MESSAGES = 50

JOB_SUBJECT_TERMS = [
    "application",
    "interview",
    "offer",
    "assessment",
    "coding challenge",
    "thank you for applying",
    "unfortunately",
]


class GmailService:
    """Reads recent job-related messages from the user's Gmail inbox."""

    def __init__(
        self,
        credentials_path: str = "credentials.json",
        token_path: str = "token.json",
        service=None,
        interactive: bool = True,
    ):
        """
        Args:
            interactive: When False, a missing or unrefreshable token is
                reported and no browser OAuth flow is started.
        """
        self.credentials_path = credentials_path
        self.token_path = token_path
        self.creds = None
        self.service = service
        self.interactive = interactive

    def is_configured(self) -> bool:
        return self.service is not None or os.path.exists(self.token_path)

    def authenticate(self):
        """Authenticate with the Gmail API. Returns None when non-interactive auth is impossible."""
        if os.path.exists(self.token_path):
            self.creds = Credentials.from_authorized_user_file(self.token_path, SCOPES)

        if not self.creds or not self.creds.valid:
            if self.creds and self.creds.expired and self.creds.refresh_token:
                try:
                    self.creds.refresh(Request())
                except RefreshError as e:
                    if not self.interactive:
                        logger.error("Gmail token refresh failed: %s", e)
                        return None
                    self.creds = self._run_oauth_flow()
            elif not self.interactive:
                logger.error("Gmail token at %s is invalid and cannot be refreshed", self.token_path)
                return None
            else:
                self.creds = self._run_oauth_flow()

            with open(self.token_path, "w") as token:
                token.write(self.creds.to_json())

        self.service = build("gmail", "v1", credentials=self.creds)
        return self.service

    def _run_oauth_flow(self):
        flow = InstalledAppFlow.from_client_secrets_file(self.credentials_path, SCOPES)
        return flow.run_local_server(port=0)

    @staticmethod
    def build_query(days_back: int, now: Optional[datetime] = None) -> str:
        since = (now or datetime.now()) - timedelta(days=days_back)
        subjects = " OR ".join(f'subject:"{term}"' for term in JOB_SUBJECT_TERMS)
        return f'after:{since.strftime("%Y/%m/%d")} ({subjects})'

    def fetch_recent_emails(self, days_back: int = 1) -> List[InboundEmail]:
        """Job-related emails received in the last ``days_back`` days."""
        if not self.service and self.authenticate() is None:
            return []

        try:
            results = self.service.users().messages().list(userId="me", q=self.build_query(days_back)).execute()
            messages = results.get("messages", [])

            emails = []
            for message in messages[:MAX_MESSAGES]:
                msg = self.service.users().messages().get(userId="me", id=message["id"]).execute()
                emails.append(self._parse_email(msg))
            logger.info("Fetched %d job emails from Gmail", len(emails))
            return emails

        except HttpError as error:
            logger.error("Gmail API error: %s", error)
            return []

    def _parse_email(self, message: Dict[str, Any]) -> InboundEmail:
        headers = message["payload"].get("headers", [])
        subject = next((h["value"] for h in headers if h["name"] == "Subject"), "")
        sender = next((h["value"] for h in headers if h["name"] == "From"), "")
        date = next((h["value"] for h in headers if h["name"] == "Date"), "")

        return InboundEmail(
            from_address=sender,
            subject=subject,
            body=self._get_email_body(message["payload"]),
            timestamp=self._parse_date(date),
        )

    @staticmethod
    def _parse_date(value: str) -> Optional[datetime]:
        if not value:
            return None
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.warning("Unparseable Date header: %r", value)
            return None

    def _get_email_body(self, payload: Dict[str, Any]) -> str:
        if payload.get("body", {}).get("data"):
            return base64.urlsafe_b64decode(payload["body"]["data"]).decode("utf-8", errors="replace")
        for part in payload.get("parts", []):
            if part.get("mimeType") == "text/plain" and part["body"].get("data"):
                return base64.urlsafe_b64decode(part["body"]["data"]).decode("utf-8", errors="replace")
        return ""
