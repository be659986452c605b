"""Import pipeline: local deposit directory -> remote deposit with manuscript."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import httpx
import structlog
from pydantic import ValidationError

from orvium_tools.errors import DepositToolError, ProtocolError, TransferError
from orvium_tools.models import Deposit, ManuscriptMetadata, UploadSignedUrlResponse
from orvium_tools.settings import Settings
from .client import PlatformClient, quote_segment
from .loader import build_manuscript_metadata, load_deposit_metadata, normalize_authors

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024
UPLOAD_PARAMS = {"isMainFile": "true", "replacePDF": "false"}


class ImportStage(str, Enum):
    LOAD = "load"
    CREATE = "create"
    MEASURE = "measure"
    NEGOTIATE = "negotiate"
    TRANSFER = "transfer"
    CONFIRM = "confirm"
    DONE = "done"


@dataclass(slots=True)
class ImportOutcome:
    """Result of one import run; ``error`` is set when a stage failed."""

    directory: Path
    community: str
    stage: ImportStage = ImportStage.LOAD
    title: str | None = None
    deposit_id: str | None = None
    error: DepositToolError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.stage is ImportStage.DONE

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


async def _iter_file(path: Path, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    with path.open("rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, chunk_size)
            if not chunk:
                break
            yield chunk


class DepositImporter:
    """Creates a deposit on the platform and attaches its manuscript."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._platform = PlatformClient(client, settings)

    async def import_deposit(self, directory: Path, community: str) -> ImportOutcome:
        """Run every import stage in order, stopping at the first failure.

        Stage errors are logged and reported through the returned outcome
        rather than raised; call :meth:`ImportOutcome.raise_for_error` to
        turn a failed outcome back into an exception.
        """
        directory = Path(directory)
        outcome = ImportOutcome(directory=directory, community=community)
        log = logger.bind(directory=str(directory), community=community)
        try:
            document = load_deposit_metadata(directory)
            deposit = Deposit(
                title=document.title,
                community=community,
                abstract=document.abstract,
                authors=normalize_authors(document.authors),
                disciplines=document.disciplines,
                keywords=document.keywords,
                manuscript=document.manuscript,
            )
            outcome.title = deposit.title

            outcome.stage = ImportStage.CREATE
            deposit_id = await self.create_deposit(deposit)
            outcome.deposit_id = deposit_id
            log = log.bind(deposit_id=deposit_id)

            outcome.stage = ImportStage.MEASURE
            manuscript_path = directory / deposit.manuscript.filename
            manuscript = build_manuscript_metadata(manuscript_path)

            outcome.stage = ImportStage.NEGOTIATE
            upload = await self.request_upload_target(deposit_id, manuscript)

            outcome.stage = ImportStage.TRANSFER
            await self.transfer_manuscript(manuscript_path, upload, manuscript)

            outcome.stage = ImportStage.CONFIRM
            await self.confirm_upload(deposit_id, upload)
        except DepositToolError as exc:
            outcome.error = exc
            log.error("import.failed", stage=outcome.stage.value, error=str(exc))
            return outcome

        outcome.stage = ImportStage.DONE
        log.info("import.completed", title=outcome.title)
        return outcome

    async def import_deposit_quietly(self, directory: Path, community: str) -> None:
        """Legacy entry point: failures are only visible in the logs."""
        await self.import_deposit(directory, community)

    async def create_deposit(self, deposit: Deposit) -> str:
        """Create the deposit record and return its platform identifier."""
        logger.info("deposit.create.attempt", title=deposit.title, community=deposit.community)
        payload = await self._platform.post_json(
            "deposits/importBasicDeposit",
            action="create deposit",
            json=deposit.creation_payload(),
        )
        deposit_id = payload.get("_id") if isinstance(payload, dict) else None
        if not deposit_id:
            raise ProtocolError("Deposit ID not found in the create deposit response")
        logger.info("deposit.create.done", deposit_id=deposit_id)
        return str(deposit_id)

    async def request_upload_target(
        self, deposit_id: str, manuscript: ManuscriptMetadata
    ) -> UploadSignedUrlResponse:
        payload = await self._platform.post_json(
            f"deposits/{quote_segment(deposit_id)}/files",
            action="request upload target",
            json=manuscript.to_payload(),
            params=UPLOAD_PARAMS,
        )
        try:
            upload = UploadSignedUrlResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(f"Unexpected upload target response: {exc}") from exc
        logger.info("deposit.upload_target.issued", deposit_id=deposit_id, file=manuscript.file.name)
        return upload

    async def transfer_manuscript(
        self,
        manuscript_path: Path,
        upload: UploadSignedUrlResponse,
        manuscript: ManuscriptMetadata,
    ) -> None:
        """Stream the manuscript bytes to the signed storage URL."""
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(manuscript.file.size),
        }
        try:
            response = await self._platform.http.put(
                upload.signed_url,
                content=_iter_file(Path(manuscript_path)),
                headers=headers,
            )
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("deposit.transfer.error", file=manuscript.file.name, error=str(exc))
            raise TransferError(f"Uploading {manuscript.file.name} failed: {exc}") from exc
        if not response.is_success:
            logger.warning(
                "deposit.transfer.rejected", file=manuscript.file.name, status=response.status_code
            )
            raise TransferError(
                f"Storage rejected {manuscript.file.name} with HTTP {response.status_code}"
            )
        logger.info("deposit.transfer.done", file=manuscript.file.name, size=manuscript.file.size)

    async def confirm_upload(self, deposit_id: str, upload: UploadSignedUrlResponse) -> None:
        await self._platform.patch(
            f"deposits/{quote_segment(deposit_id)}/files/confirm",
            action="confirm upload",
            json=upload.confirmation_payload(),
        )
        logger.info("deposit.upload.confirmed", deposit_id=deposit_id)
