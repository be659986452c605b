"""Export pipeline: remote deposit -> ``deposit_<id>.zip`` with metadata and manuscript."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import structlog
from pydantic import ValidationError

from orvium_tools.errors import DownloadError, ExportError, RemoteError
from orvium_tools.models import META_FILENAME, Author, Deposit, DepositPopulated, ManuscriptRef
from orvium_tools.result import Err, FetchFailure, Ok, Result
from orvium_tools.settings import Settings
from .archive import ArchiveEntry, build_archive, remove_loose_files
from .client import PlatformClient, failure_from_error, quote_segment

logger = structlog.get_logger(__name__)

REDIRECT_STATUS = frozenset({302})


def archive_name(deposit_id: str) -> str:
    return f"deposit_{deposit_id}.zip"


def local_deposit(populated: DepositPopulated) -> Deposit:
    """Rebuild the ``meta.json`` view of a remote deposit.

    The manuscript is named after ``publicationFile.description``; the stored
    ``publicationFile.filename`` is only used to download it.
    """
    authors = [
        Author(
            first_name=author.first_name,
            last_name=author.last_name,
            nickname=author.nickname or "",
            email=author.email or "",
            orcid=author.orcid or "",
        )
        for author in populated.authors
    ]
    return Deposit(
        title=populated.title,
        community=populated.community_populated.name,
        abstract=populated.abstract or "",
        authors=authors,
        disciplines=populated.disciplines,
        keywords=populated.keywords,
        manuscript=ManuscriptRef(filename=populated.manuscript_display_name),
    )


class DepositExporter:
    """Downloads a deposit and packages it for transport."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._platform = PlatformClient(client, settings)

    async def fetch_deposit(self, deposit_id: str) -> Result[DepositPopulated]:
        """Fetch the populated deposit; failures are returned, never raised."""
        try:
            response = await self._platform.get(
                f"deposits/{quote_segment(deposit_id)}", action="fetch deposit"
            )
        except RemoteError as exc:
            logger.warning("deposit.fetch.failed", deposit_id=deposit_id, error=str(exc))
            return Err(failure_from_error(exc))
        try:
            populated = DepositPopulated.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("deposit.fetch.invalid", deposit_id=deposit_id, error=str(exc))
            return Err(FetchFailure(kind="invalid", message=str(exc), status=response.status_code))
        return Ok(populated)

    async def download_manuscript(self, deposit_id: str, filename: str, directory: Path) -> Path:
        """Resolve the file's signed location and stream it to ``directory/filename``."""
        try:
            response = await self._platform.get(
                f"deposits/{quote_segment(deposit_id)}/files/{quote_segment(filename)}",
                action="request file location",
                expected=REDIRECT_STATUS,
            )
        except RemoteError as exc:
            raise DownloadError(f"Could not locate {filename}: {exc}") from exc

        location = response.headers.get("location")
        if not location:
            raise DownloadError("Signed URL not found in response headers")

        target = Path(directory) / filename
        try:
            async with self._platform.http.stream(
                "GET", response.url.join(location), follow_redirects=True
            ) as stream:
                stream.raise_for_status()
                with target.open("wb") as fh:
                    async for chunk in stream.aiter_bytes():
                        fh.write(chunk)
        except (httpx.HTTPError, OSError) as exc:
            target.unlink(missing_ok=True)
            raise DownloadError(f"Downloading {filename} failed: {exc}") from exc
        logger.info("deposit.manuscript.downloaded", deposit_id=deposit_id, target=str(target))
        return target

    async def export_deposit(self, deposit_id: str, directory: Path) -> Path:
        """Write ``deposit_<id>.zip`` into ``directory`` and return its path."""
        directory = Path(directory)
        log = logger.bind(deposit_id=deposit_id, directory=str(directory))

        result = await self.fetch_deposit(deposit_id)
        if isinstance(result, Err):
            raise ExportError(f"populated deposit is null: {result.failure}")
        populated = result.value
        deposit = local_deposit(populated)

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(f"Cannot create download directory {directory}: {exc}") from exc
        metadata_path = directory / META_FILENAME
        manuscript_path = directory / populated.publication_file.filename
        try:
            # a leftover copy from an earlier run must not stand in for a failed download
            manuscript_path.unlink(missing_ok=True)
            metadata_path.write_text(json.dumps(deposit.to_payload(), indent=2), encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Cannot prepare {directory}: {exc}") from exc

        try:
            await self.download_manuscript(deposit_id, populated.publication_file.filename, directory)
        except DownloadError as exc:
            # the archive step reports the missing manuscript
            log.error("export.download_failed", error=str(exc))

        archive_path = directory / archive_name(deposit_id)
        entries = [
            ArchiveEntry(source=metadata_path, name=META_FILENAME),
            ArchiveEntry(source=manuscript_path, name=deposit.manuscript.filename),
        ]
        await asyncio.to_thread(build_archive, entries, archive_path)
        remove_loose_files([metadata_path, manuscript_path])
        log.info("export.completed", archive=str(archive_path))
        return archive_path
