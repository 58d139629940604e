"""Collector base class: fetch, parse, persist.

A collector is bound to one upstream endpoint. `parse()` is a pure mapping
from the decoded payload to canonical points; `collect()` runs the whole
pipeline and never raises, reporting failures in the returned
CollectionResult instead.

No retries happen here; the external scheduler re-invokes on its next tick.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import httpx
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging import get_logger
from app.domain import CanonicalPoint
from app.repositories import indicator_data_orm as indicator_data_repo
from app.schemas.collectors import CollectedPoint, CollectionResult

from .errors import CollectorError, UpstreamError


logger = get_logger("collectors")

# Repeated polls must always see fresh upstream state
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
}

PAYLOAD_SNIPPET_CHARS = 200


class Collector(ABC):
    """One upstream source writing one or more indicators."""

    source: ClassVar[str]
    url: ClassVar[str]
    upstream_name: ClassVar[str]
    # indicator id -> display name, in the order results are reported
    indicators: ClassVar[dict[str, str]]
    extra_headers: ClassVar[dict[str, str]] = {}

    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": settings.collector_user_agent,
            "Accept": "application/json",
            **NO_CACHE_HEADERS,
            **self.extra_headers,
        }

    async def fetch(self, client: httpx.AsyncClient) -> Any:
        """GET the upstream payload and decode it.

        The body is read as text and decoded separately so a malformed
        payload can be logged in truncated form.

        Raises:
            UpstreamError: on a non-2xx status or an undecodable body
        """
        response = await client.get(self.url, headers=self.request_headers())
        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamError(f"HTTP error! status: {response.status_code}")

        text = response.text
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.error(
                f"Failed to parse {self.upstream_name} response",
                extra={"source": self.source, "payload_snippet": text[:PAYLOAD_SNIPPET_CHARS]},
            )
            raise UpstreamError(f"Invalid JSON response from {self.upstream_name} API") from None

    @abstractmethod
    def parse(self, payload: Any) -> list[CanonicalPoint]:
        """Map a decoded payload to canonical points.

        Entries with a missing or invalid timestamp or value are skipped.

        Raises:
            PayloadError: if the payload as a whole is unusable
        """

    async def persist(self, points: Sequence[CanonicalPoint]) -> int:
        return await indicator_data_repo.batch_upsert(points)

    def _describe(self, point: CanonicalPoint) -> CollectedPoint:
        return CollectedPoint(
            id=point.indicator_id,
            name=self.indicators.get(point.indicator_id, point.indicator_id),
            timestamp=point.ts_utc,
            value=float(point.value),
            label=point.label,
        )

    async def collect(self, client: httpx.AsyncClient | None = None) -> CollectionResult:
        """Run fetch, parse and persist once.

        Args:
            client: Shared HTTP client; a short-lived one is created if omitted

        Returns:
            CollectionResult with stored=False and an error message on failure
        """
        try:
            if client is None:
                async with httpx.AsyncClient(
                    timeout=settings.external_api_timeout,
                    follow_redirects=True,
                ) as own_client:
                    payload = await self.fetch(own_client)
            else:
                payload = await self.fetch(client)

            points = self.parse(payload)
            inserted = await self.persist(points)
        except httpx.TimeoutException:
            return self._failed(f"Request to {self.upstream_name} API timed out")
        except httpx.HTTPError as e:
            return self._failed(f"Request to {self.upstream_name} API failed: {e}")
        except CollectorError as e:
            return self._failed(str(e))
        except SQLAlchemyError as e:
            logger.exception(f"Storing {self.source} data failed: {e}")
            return self._failed("Failed to store collected data")
        except Exception as e:
            logger.exception(f"Collector {self.source} crashed: {e}")
            return self._failed(f"Unexpected collector error: {type(e).__name__}")

        logger.info(
            f"Collected {len(points)} points from {self.source} ({inserted} new)",
            extra={"source": self.source, "count": len(points), "inserted": inserted},
        )
        return CollectionResult(
            source=self.source,
            stored=True,
            count=len(points),
            inserted=inserted,
            indicators=[self._describe(p) for p in points],
        )

    def _failed(self, error: str) -> CollectionResult:
        logger.warning(f"Collector {self.source} failed: {error}", extra={"source": self.source})
        return CollectionResult(source=self.source, stored=False, error=error)
