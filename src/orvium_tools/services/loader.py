"""Local deposit metadata: ``meta.json`` parsing and manuscript inspection."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import structlog
from pydantic import ValidationError

from orvium_tools.errors import FileAccessError, LoadError
from orvium_tools.models import (
    DOCX_CONTENT_TYPE,
    META_FILENAME,
    Author,
    DepositMetadataDocument,
    InputAuthor,
    ManuscriptFile,
    ManuscriptMetadata,
)

logger = structlog.get_logger(__name__)


def load_deposit_metadata(directory: Path) -> DepositMetadataDocument:
    """Read ``meta.json`` from ``directory``."""
    meta_path = Path(directory).resolve() / META_FILENAME
    try:
        raw = meta_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("metadata.read_failed", path=str(meta_path), error=str(exc))
        raise LoadError(f"Cannot read {meta_path}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("metadata.parse_failed", path=str(meta_path), error=str(exc))
        raise LoadError(f"{meta_path} is not valid JSON: {exc}") from exc
    try:
        document = DepositMetadataDocument.model_validate(payload)
    except ValidationError as exc:
        logger.error("metadata.invalid", path=str(meta_path), errors=exc.error_count())
        raise LoadError(f"{meta_path} is missing required deposit fields: {exc}") from exc
    logger.debug("metadata.loaded", path=str(meta_path), authors=len(document.authors))
    return document


def transform_author(author: InputAuthor) -> Author:
    return Author(
        first_name=author.first_name,
        last_name=author.last_name,
        orcid=author.orcid,
    )


def normalize_authors(authors: list[InputAuthor | Author]) -> list[Author]:
    """Map every source-format author to the platform form, keeping order.

    Entries already in platform form (as written by an export) pass through.
    """
    return [
        transform_author(author) if isinstance(author, InputAuthor) else author
        for author in authors
    ]


def build_manuscript_metadata(
    manuscript_path: Path, content_type: str = DOCX_CONTENT_TYPE
) -> ManuscriptMetadata:
    """Describe the manuscript from its filesystem attributes."""
    path = Path(manuscript_path)
    try:
        info = path.stat()
    except OSError as exc:
        raise FileAccessError(f"Cannot access manuscript {path}: {exc}") from exc
    if not stat.S_ISREG(info.st_mode):
        raise FileAccessError(f"Manuscript {path} is not a regular file")
    try:
        with path.open("rb"):
            pass
    except OSError as exc:
        raise FileAccessError(f"Manuscript {path} is not readable: {exc}") from exc
    return ManuscriptMetadata(
        file=ManuscriptFile(
            name=path.name,
            type=content_type,
            size=info.st_size,
            last_modified=info.st_mtime * 1000,
        )
    )
