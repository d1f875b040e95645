from dataclasses import dataclass, field
from typing import List

from sessions_radar.config.date_windows import ANALYTICS_SCOPES

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass
class ServiceAccountKey:
    """
    Canonical service-account identity for the entire system.
    Only the values the JWT exchange needs are carried; no key file on disk.
    """
    client_email: str
    private_key: str
    token_uri: str = GOOGLE_TOKEN_URI
    scopes: List[str] = field(default_factory=lambda: list(ANALYTICS_SCOPES))

    def to_info(self) -> dict:
        """Convert to the dict shape google-auth expects for service account info"""
        return {
            'type': 'service_account',
            'client_email': self.client_email,
            'private_key': self.private_key,
            'token_uri': self.token_uri,
        }
