import logging
from typing import Iterable, Optional, Set
from urllib.parse import parse_qs, urlparse

import requests

from .config import Settings

logger = logging.getLogger(__name__)

VERCEL_API_URL = "https://api.vercel.com"


class TokenRegistryError(Exception):
    """The token allow-list could not be read or written"""


class EdgeConfigTokenRegistry:
    """
    Admin token allow-list stored in a Vercel Edge Config item.

    The item holds a JSON array of tokens. Reads go through the Edge Config
    endpoint encoded in the connection string
    (https://edge-config.vercel.com/<id>?token=<read token>); writes go through
    the Vercel REST API and need an API token.
    """

    def __init__(
        self,
        connection_string: str,
        key: str = "admin_tokens",
        api_token: str = "",
        team_id: str = "",
        timeout: float = 5.0,
        http: Optional[requests.Session] = None,
    ):
        self.key = key
        self.api_token = api_token
        self.team_id = team_id
        self.timeout = timeout
        self.http = http or requests.Session()
        self.base_url = None
        self.config_id = None
        self.read_token = None

        if connection_string:
            parsed = urlparse(connection_string)
            self.config_id = parsed.path.strip("/") or None
            self.read_token = parse_qs(parsed.query).get("token", [None])[0]
            if self.config_id:
                self.base_url = f"{parsed.scheme}://{parsed.netloc}/{self.config_id}"

        if not self.configured:
            logger.warning("Edge Config not configured - admin token registry unavailable")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EdgeConfigTokenRegistry":
        return cls(
            settings.EDGE_CONFIG,
            key=settings.EDGE_CONFIG_TOKENS_KEY,
            api_token=settings.VERCEL_API_TOKEN,
            team_id=settings.VERCEL_TEAM_ID,
            timeout=settings.EDGE_CONFIG_TIMEOUT,
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.read_token)

    def get_tokens(self) -> Set[str]:
        """Fetch the current allow-list. Every call is a fresh read."""
        if not self.configured:
            raise TokenRegistryError("Edge Config connection string is not set")

        try:
            response = self.http.get(
                f"{self.base_url}/item/{self.key}",
                headers={"Authorization": f"Bearer {self.read_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TokenRegistryError(f"Edge Config request failed: {e}") from e

        # Missing item: nobody has logged in yet
        if response.status_code == 404:
            return set()
        if not response.ok:
            raise TokenRegistryError(f"Edge Config returned HTTP {response.status_code}")

        try:
            value = response.json()
        except ValueError as e:
            raise TokenRegistryError("Edge Config returned invalid JSON") from e

        if value is None:
            return set()
        if not isinstance(value, list):
            raise TokenRegistryError(f"Edge Config item '{self.key}' is not a list")
        return {str(token) for token in value}

    def add_token(self, token: str) -> None:
        tokens = self.get_tokens()
        if token in tokens:
            return
        tokens.add(token)
        self._write(tokens)

    def remove_token(self, token: str) -> None:
        tokens = self.get_tokens()
        if token not in tokens:
            return
        tokens.discard(token)
        self._write(tokens)

    def _write(self, tokens: Iterable[str]) -> None:
        if not (self.api_token and self.config_id):
            raise TokenRegistryError("VERCEL_API_TOKEN is required to update Edge Config")

        params = {"teamId": self.team_id} if self.team_id else None
        payload = {"items": [{"operation": "upsert", "key": self.key, "value": sorted(tokens)}]}
        try:
            response = self.http.patch(
                f"{VERCEL_API_URL}/v1/edge-config/{self.config_id}/items",
                json=payload,
                params=params,
                headers={"Authorization": f"Bearer {self.api_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TokenRegistryError(f"Edge Config update failed: {e}") from e

        if not response.ok:
            raise TokenRegistryError(f"Edge Config update returned HTTP {response.status_code}")
        logger.info(f"Edge Config item '{self.key}' updated ({len(payload['items'][0]['value'])} tokens)")
