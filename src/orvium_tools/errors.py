"""Exception taxonomy shared by the import, export and summary workflows."""

from __future__ import annotations


class DepositToolError(RuntimeError):
    """Base class for every failure raised by orvium-tools."""


class ConfigError(DepositToolError):
    """Raised when required settings are not available."""


class LoadError(DepositToolError):
    """Raised when ``meta.json`` cannot be read or parsed."""


class FileAccessError(DepositToolError):
    """Raised when the manuscript file cannot be inspected."""


class RemoteError(DepositToolError):
    """Raised when the platform answers with a non-success response."""

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is None:
            return message
        detail = f" (HTTP {self.status})"
        if self.body:
            detail += f": {self.body[:200]}"
        return message + detail


class ProtocolError(DepositToolError):
    """Raised when a success response lacks a field the workflow depends on."""


class TransferError(DepositToolError):
    """Raised when the storage backend rejects the manuscript upload."""


class DownloadError(DepositToolError):
    """Raised when the manuscript cannot be retrieved from the platform."""


class PackagingError(DepositToolError):
    """Raised when the export archive cannot be built."""


class ExportError(DepositToolError):
    """Raised when an export cannot proceed."""
