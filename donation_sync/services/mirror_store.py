"""
Real-time mirror store.

MirrorStore is the interface the sync layer writes through. FirebaseMirror
talks to a Firebase Realtime Database over its REST protocol: every path
maps to ``<database_url>/<path>.json``.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from donation_sync.config import Settings
from donation_sync.utils.helpers import generate_push_id

logger = logging.getLogger(__name__)


class MirrorStore(ABC):

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """Replace the value at path"""

    @abstractmethod
    async def update(self, path: str, values: Dict[str, Any]) -> None:
        """Merge values into the object at path"""

    @abstractmethod
    async def push(self, path: str) -> str:
        """Reserve a new chronologically ordered child key under path"""

    @abstractmethod
    async def get(self, path: str) -> Optional[Any]:
        """Value at path, or None when nothing is stored there"""

    @abstractmethod
    async def is_connected(self) -> bool:
        """Connectivity check; never raises"""

    async def aclose(self) -> None:
        pass


class FirebaseMirror(MirrorStore):
    def __init__(
        self,
        database_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.database_url = database_url.rstrip("/")
        self._params = {"auth": auth_token} if auth_token else {}
        self._client = httpx.AsyncClient(
            base_url=self.database_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebaseMirror":
        return cls(
            database_url=settings.firebase_database_url,
            auth_token=settings.FIREBASE_AUTH_TOKEN or None,
            timeout=settings.MIRROR_TIMEOUT_SECONDS,
        )

    @staticmethod
    def _url(path: str) -> str:
        return f"/{path.strip('/')}.json"

    async def set(self, path: str, value: Any) -> None:
        response = await self._client.put(self._url(path), json=value, params=self._params)
        response.raise_for_status()
        logger.debug(f"Mirror set {path}")

    async def update(self, path: str, values: Dict[str, Any]) -> None:
        response = await self._client.patch(self._url(path), json=values, params=self._params)
        response.raise_for_status()
        logger.debug(f"Mirror update {path}: {list(values.keys())}")

    async def push(self, path: str) -> str:
        # Keys are generated client side, as the Firebase SDKs do
        return generate_push_id()

    async def get(self, path: str) -> Optional[Any]:
        response = await self._client.get(self._url(path), params=self._params)
        response.raise_for_status()
        return response.json()

    async def is_connected(self) -> bool:
        try:
            response = await self._client.get(
                "/.json", params={**self._params, "shallow": "true"}
            )
        except httpx.HTTPError as e:
            logger.info(f"Mirror not reachable: {e}")
            return False
        connected = response.status_code == 200
        logger.debug(f"Mirror connection test: {connected}")
        return connected

    async def aclose(self) -> None:
        await self._client.aclose()
