"""
Gmail Authentication Manager

Builds Google OAuth2 credentials from a client id, client secret and a
long-lived refresh token, and creates authenticated Gmail API services.

Key Features:
- No interactive flow: the refresh token is provisioned out of band
- Missing configuration fails fast with ConfigurationError
- Access tokens are refreshed by google-auth on first use
"""

import logging
from typing import Any, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from inbox_desk.config import TRIAGE_CONFIG
from inbox_desk.triage.errors import ConfigurationError

logger = logging.getLogger(__name__)

_SOURCE_CONFIG = TRIAGE_CONFIG["mail_source"]


class GmailAuthenticationManager:
    """
    Creates Gmail API services for a single mailbox.

    Attributes:
        client_id: OAuth client id
        client_secret: OAuth client secret
        refresh_token: Refresh token granted for ``scopes``
        scopes: Gmail API scopes the refresh token was granted for
    """

    def __init__(self,
                 client_id: Optional[str],
                 client_secret: Optional[str],
                 refresh_token: Optional[str],
                 scopes: Optional[List[str]] = None,
                 token_uri: str = _SOURCE_CONFIG["token_uri"]):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.scopes = scopes or list(_SOURCE_CONFIG["scopes"])
        self.token_uri = token_uri

    def missing_settings(self) -> List[str]:
        """Names of the Google settings that are not configured."""
        missing = []
        if not self.client_id:
            missing.append("GOOGLE_CLIENT_ID")
        if not self.client_secret:
            missing.append("GOOGLE_CLIENT_SECRET")
        if not self.refresh_token:
            missing.append("GOOGLE_REFRESH_TOKEN")
        return missing

    def build_credentials(self) -> Credentials:
        """
        Build refreshable credentials.

        Raises:
            ConfigurationError: If any of the OAuth settings is missing
        """
        missing = self.missing_settings()
        if missing:
            logger.error(f"Gmail credentials not configured: {', '.join(missing)}")
            raise ConfigurationError(
                "Google OAuth credentials are not configured",
                details=f"Missing settings: {', '.join(missing)}",
            )

        return Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes,
        )

    def create_gmail_service(self) -> Any:
        """Create an authenticated Gmail v1 service."""
        credentials = self.build_credentials()
        service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
        logger.info("Gmail service initialized successfully")
        return service
