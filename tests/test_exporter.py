import json
import zipfile
from pathlib import Path

import httpx
import pytest

from orvium_tools.errors import DownloadError, ExportError, PackagingError
from orvium_tools.result import Err, Ok
from orvium_tools.services.exporter import DepositExporter
from orvium_tools.settings import Settings

API = "https://api.example.test"
DEPOSIT_ID = "64a09f6ce3d5ff0813586345"
MANUSCRIPT = b"manuscript bytes from storage"


def _settings() -> Settings:
    return Settings(api_url=API, api_key="key-123", api_key_user="user-456")


def _populated() -> dict:
    return {
        "_id": DEPOSIT_ID,
        "title": "Analytical Engines",
        "abstract": "Notes on the engine.",
        "authors": [
            {"firstName": "Ada", "lastName": "Lovelace", "orcid": "0000-0002-1825-0097"},
            {"firstName": "Charles", "lastName": "Babbage", "nickName": "cb", "email": "cb@example.test"},
        ],
        "disciplines": ["Computer science"],
        "keywords": ["engines"],
        "communityPopulated": {"_id": "c-1", "name": "Orvium Community"},
        "publicationFile": {"filename": "X.docx", "description": "Y.docx"},
        "status": "draft",
    }


class _Platform:
    def __init__(self, **overrides: httpx.Response) -> None:
        self.requests: list[httpx.Request] = []
        self._overrides = overrides

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.url.host == "storage.example.test":
            return self._overrides.get("download", httpx.Response(200, content=MANUSCRIPT))
        if path == f"/deposits/{DEPOSIT_ID}":
            return self._overrides.get("fetch", httpx.Response(200, json=_populated()))
        if path == f"/deposits/{DEPOSIT_ID}/files/X.docx":
            return self._overrides.get(
                "locate",
                httpx.Response(
                    302, headers={"location": "https://storage.example.test/files/X.docx?sig=abc"}
                ),
            )
        return httpx.Response(404)


@pytest.mark.asyncio
async def test_export_packages_manuscript_under_description(tmp_path: Path) -> None:
    directory = tmp_path / "export1"
    platform = _Platform()

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        archive = await DepositExporter(client=client, settings=_settings()).export_deposit(
            DEPOSIT_ID, directory
        )

    assert archive == directory / f"deposit_{DEPOSIT_ID}.zip"
    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["Y.docx", "meta.json"]
        assert zf.read("Y.docx") == MANUSCRIPT
        meta = json.loads(zf.read("meta.json"))
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())

    assert meta["manuscript"] == {"filename": "Y.docx"}
    assert meta["community"] == "Orvium Community"
    assert meta["authors"][0] == {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "nickName": "",
        "email": "",
        "orcid": "0000-0002-1825-0097",
    }
    assert meta["authors"][1]["nickName"] == "cb"
    assert not (directory / "meta.json").exists()
    assert not (directory / "X.docx").exists()
    assert sorted(path.name for path in directory.iterdir()) == [f"deposit_{DEPOSIT_ID}.zip"]


@pytest.mark.asyncio
async def test_export_sends_credentials_only_to_platform(tmp_path: Path) -> None:
    platform = _Platform()

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        await DepositExporter(client=client, settings=_settings()).export_deposit(DEPOSIT_ID, tmp_path)

    platform_calls = [r for r in platform.requests if r.url.host == "api.example.test"]
    storage_calls = [r for r in platform.requests if r.url.host == "storage.example.test"]
    assert len(platform_calls) == 2
    assert len(storage_calls) == 1
    assert all(r.headers["x-api-key"] == "key-123" for r in platform_calls)
    assert "x-api-key" not in storage_calls[0].headers


@pytest.mark.asyncio
async def test_export_aborts_before_writing_when_fetch_fails(tmp_path: Path) -> None:
    directory = tmp_path / "out"
    platform = _Platform(fetch=httpx.Response(500, text="unavailable"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        with pytest.raises(ExportError, match="populated deposit is null"):
            await DepositExporter(client=client, settings=_settings()).export_deposit(
                DEPOSIT_ID, directory
            )

    assert not directory.exists()
    assert len(platform.requests) == 1


@pytest.mark.asyncio
async def test_export_without_redirect_fails_at_archive_step(tmp_path: Path) -> None:
    platform = _Platform(locate=httpx.Response(200, json={"url": "not a redirect"}))

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        with pytest.raises(PackagingError):
            await DepositExporter(client=client, settings=_settings()).export_deposit(
                DEPOSIT_ID, tmp_path
            )

    assert (tmp_path / "meta.json").exists()
    assert not (tmp_path / "X.docx").exists()
    assert not (tmp_path / f"deposit_{DEPOSIT_ID}.zip").exists()
    assert all(r.url.host != "storage.example.test" for r in platform.requests)


@pytest.mark.asyncio
async def test_download_requires_location_header(tmp_path: Path) -> None:
    platform = _Platform(locate=httpx.Response(302))

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        exporter = DepositExporter(client=client, settings=_settings())
        with pytest.raises(DownloadError, match="Signed URL not found"):
            await exporter.download_manuscript(DEPOSIT_ID, "X.docx", tmp_path)

    assert not (tmp_path / "X.docx").exists()


@pytest.mark.asyncio
async def test_download_failure_removes_partial_file(tmp_path: Path) -> None:
    platform = _Platform(download=httpx.Response(403, text="expired"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        exporter = DepositExporter(client=client, settings=_settings())
        with pytest.raises(DownloadError):
            await exporter.download_manuscript(DEPOSIT_ID, "X.docx", tmp_path)

    assert not (tmp_path / "X.docx").exists()


@pytest.mark.asyncio
async def test_fetch_deposit_distinguishes_not_found_from_network(tmp_path: Path) -> None:
    def missing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Deposit not found"})

    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(missing)) as client:
        result = await DepositExporter(client=client, settings=_settings()).fetch_deposit(DEPOSIT_ID)
    assert isinstance(result, Err)
    assert result.failure.kind == "not_found"
    assert result.failure.status == 404

    async with httpx.AsyncClient(transport=httpx.MockTransport(offline)) as client:
        result = await DepositExporter(client=client, settings=_settings()).fetch_deposit(DEPOSIT_ID)
    assert isinstance(result, Err)
    assert result.failure.kind == "network"
    assert result.failure.status is None


@pytest.mark.asyncio
async def test_fetch_deposit_returns_populated_model() -> None:
    platform = _Platform()

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        result = await DepositExporter(client=client, settings=_settings()).fetch_deposit(DEPOSIT_ID)

    assert isinstance(result, Ok)
    assert result.value.publication_file.filename == "X.docx"
    assert result.value.community_populated.name == "Orvium Community"


@pytest.mark.asyncio
async def test_export_into_unusable_directory_is_export_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    platform = _Platform()

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        with pytest.raises(ExportError, match="Cannot create download directory"):
            await DepositExporter(client=client, settings=_settings()).export_deposit(
                DEPOSIT_ID, blocker / "out"
            )

    assert len(platform.requests) == 1


@pytest.mark.asyncio
async def test_export_does_not_archive_stale_manuscript(tmp_path: Path) -> None:
    (tmp_path / "X.docx").write_bytes(b"left over from an earlier run")
    platform = _Platform(locate=httpx.Response(500, text="storage unavailable"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(platform.handler)) as client:
        with pytest.raises(PackagingError):
            await DepositExporter(client=client, settings=_settings()).export_deposit(
                DEPOSIT_ID, tmp_path
            )

    assert not (tmp_path / "X.docx").exists()
    assert not (tmp_path / f"deposit_{DEPOSIT_ID}.zip").exists()


@pytest.mark.asyncio
async def test_download_location_transport_error(tmp_path: Path) -> None:
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(offline)) as client:
        exporter = DepositExporter(client=client, settings=_settings())
        with pytest.raises(DownloadError, match="Could not locate X.docx"):
            await exporter.download_manuscript(DEPOSIT_ID, "X.docx", tmp_path)

    assert not (tmp_path / "X.docx").exists()
