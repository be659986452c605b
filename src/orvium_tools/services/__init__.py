"""Service abstractions for the orvium-tools workflows."""

from .archive import ArchiveEntry, build_archive, remove_loose_files
from .client import PlatformClient
from .exporter import DepositExporter, archive_name, local_deposit
from .importer import DepositImporter, ImportOutcome, ImportStage
from .loader import (
    build_manuscript_metadata,
    load_deposit_metadata,
    normalize_authors,
    transform_author,
)
from .summary import UserSummaryFetcher

__all__ = [
    "ArchiveEntry",
    "build_archive",
    "remove_loose_files",
    "PlatformClient",
    "DepositExporter",
    "archive_name",
    "local_deposit",
    "DepositImporter",
    "ImportOutcome",
    "ImportStage",
    "build_manuscript_metadata",
    "load_deposit_metadata",
    "normalize_authors",
    "transform_author",
    "UserSummaryFetcher",
]
