"""
Mapping collaborator - driving routes from an OSRM server over HTTP.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from ridesearch.error_handling import MappingUnavailableError
from ridesearch.models import Coordinates, MappedRoute

logger = logging.getLogger(__name__)


class MappingService(ABC):
    """Route lookup between two points"""

    @abstractmethod
    async def route(self, origin: Coordinates, destination: Coordinates) -> MappedRoute:
        """
        Raises:
            MappingUnavailableError: when no route can be obtained
        """

    async def close(self) -> None:
        return None


class OSRMMappingClient(MappingService):
    """
    OSRM route service client.

    Reuses one aiohttp session; call ``close`` (or use as an async context
    manager) when done.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 5.0, profile: str = "driving"):
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Ensure we have an open session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self):
        """Explicitly close the session when done"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def build_url(self, origin: Coordinates, destination: Coordinates) -> str:
        # OSRM takes lng,lat pairs
        points = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        return f"{self.base_url}/route/v1/{self.profile}/{points}"

    async def route(self, origin: Coordinates, destination: Coordinates) -> MappedRoute:
        await self._ensure_session()
        params = {"overview": "full", "geometries": "geojson"}
        url = self.build_url(origin, destination)

        try:
            async with self._session.get(url, params=params) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise MappingUnavailableError(
                        f"OSRM error: {response.status} - {error_text[:200]}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"OSRM request failed: {e}")
            raise MappingUnavailableError(f"OSRM request failed: {e}") from e

        if not isinstance(data, dict):
            raise MappingUnavailableError("OSRM returned a non-object body")

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            raise MappingUnavailableError(f"OSRM returned no route: {data.get('code')}")

        best = routes[0]
        return MappedRoute(
            distance=float(best.get("distance", 0)),
            duration=float(best.get("duration", 0)),
            geometry=best.get("geometry"),
        )
