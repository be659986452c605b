"""Zip packaging for exported deposits."""

from __future__ import annotations

import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from orvium_tools.errors import PackagingError

logger = structlog.get_logger(__name__)

COMPRESS_LEVEL = 9


@dataclass(slots=True, frozen=True)
class ArchiveEntry:
    source: Path
    name: str


def build_archive(entries: Iterable[ArchiveEntry], target: Path) -> Path:
    """Write ``entries`` into a deflated zip at ``target``.

    The archive is closed before returning. On failure the partial archive is
    removed and :class:`PackagingError` is raised; the sources are untouched.
    """
    entries = list(entries)
    for entry in entries:
        if not entry.source.is_file():
            raise PackagingError(f"Cannot archive {entry.name}: {entry.source} does not exist")
    try:
        with zipfile.ZipFile(
            target, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL
        ) as archive:
            for entry in entries:
                archive.write(entry.source, arcname=entry.name)
    except (OSError, zipfile.BadZipFile, ValueError) as exc:
        target.unlink(missing_ok=True)
        logger.error("archive.failed", target=str(target), error=str(exc))
        raise PackagingError(f"Failed to build {target}: {exc}") from exc
    logger.info("archive.created", target=str(target), entries=len(entries))
    return target


def remove_loose_files(paths: Iterable[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PackagingError(f"Archive written but {path} could not be removed: {exc}") from exc
        logger.debug("archive.source_removed", path=str(path))
