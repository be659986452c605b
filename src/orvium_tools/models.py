"""Core data models exchanged with the publication platform."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

META_FILENAME = "meta.json"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class PlatformModel(BaseModel):
    """Base for models whose wire format uses camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self, **kwargs: Any) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class Author(PlatformModel):
    """A contributor as the platform stores it."""

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    nickname: str | None = Field(default=None, alias="nickName")
    email: str | None = None
    orcid: str | None = None


class InputAuthor(BaseModel):
    """Author record as found in a local ``meta.json`` produced by an external source."""

    author_id: int | str | None = None
    user_id: int | str | None = None
    first_name: str
    middle_name: str | None = None
    last_name: str
    orcid: str | None = None
    date_modified: str | None = None


class ManuscriptRef(BaseModel):
    filename: str


class DepositMetadataDocument(BaseModel):
    """Parsed contents of ``meta.json`` on the import side."""

    title: str
    abstract: str = ""
    authors: list[InputAuthor | Author] = Field(default_factory=list)
    disciplines: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    manuscript: ManuscriptRef


class Deposit(PlatformModel):
    """Deposit as sent to ``importBasicDeposit`` and as written on export."""

    title: str
    community: str
    abstract: str = ""
    authors: list[Author] = Field(default_factory=list)
    disciplines: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    manuscript: ManuscriptRef

    def creation_payload(self) -> dict[str, Any]:
        """Request body for deposit creation; the manuscript travels separately."""
        return self.to_payload(exclude={"manuscript"}, exclude_none=True)


class CommunityRef(BaseModel):
    name: str


class PublicationFile(BaseModel):
    filename: str
    description: str | None = None


class DepositPopulated(PlatformModel):
    """Server-side representation returned by ``GET /deposits/{id}``."""

    title: str
    abstract: str | None = None
    authors: list[Author] = Field(default_factory=list)
    disciplines: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    community_populated: CommunityRef = Field(alias="communityPopulated")
    publication_file: PublicationFile = Field(alias="publicationFile")

    @property
    def manuscript_display_name(self) -> str:
        """Name the manuscript is presented under in ``meta.json`` and the archive."""
        return self.publication_file.description or self.publication_file.filename


class ManuscriptFile(PlatformModel):
    name: str
    type: str = DOCX_CONTENT_TYPE
    size: int
    last_modified: float = Field(alias="lastModified")


class ManuscriptMetadata(PlatformModel):
    """File attributes sent when requesting an upload destination."""

    file: ManuscriptFile


class FileMetadata(PlatformModel):
    """Platform-side metadata for a stored file object."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    filename: str
    description: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    content_length: int | None = Field(default=None, alias="contentLength")
    tags: list[str] = Field(default_factory=list)


class UploadSignedUrlResponse(PlatformModel):
    """Answer to an upload-intent request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    signed_url: str = Field(alias="signedUrl", repr=False)
    file_metadata: FileMetadata = Field(alias="fileMetadata")
    is_main_file: bool = Field(default=True, alias="isMainFile")
    replace_pdf: bool = Field(default=False, alias="replacePDF")

    def confirmation_payload(self) -> dict[str, Any]:
        """Body for the confirm call, without the one-time write URL."""
        return self.to_payload(exclude={"signed_url"})
