"""Read-only lookup of a user's contribution summary."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from orvium_tools.errors import RemoteError
from orvium_tools.result import Err, FetchFailure, Ok, Result
from orvium_tools.settings import Settings
from .client import PlatformClient, failure_from_error, quote_segment

logger = structlog.get_logger(__name__)


class UserSummaryFetcher:
    """Fetches ``/users/profile/{orcid}/summary``."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._platform = PlatformClient(client, settings)

    async def fetch(self, orcid: str) -> Result[Any]:
        logger.info("summary.fetch.attempt", orcid=orcid)
        try:
            response = await self._platform.get(
                f"users/profile/{quote_segment(orcid)}/summary", action="fetch user summary"
            )
        except RemoteError as exc:
            logger.warning("summary.fetch.failed", orcid=orcid, error=str(exc))
            return Err(failure_from_error(exc))
        try:
            document = response.json()
        except ValueError as exc:
            return Err(FetchFailure(kind="invalid", message=str(exc), status=response.status_code))
        return Ok(document)
