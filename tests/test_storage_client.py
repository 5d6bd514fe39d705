from unittest.mock import patch

import httpx
import jwt
import pytest

from tei_viewer_server.storage.client import (
    DocumentTooLargeError,
    StorageClient,
    StorageNotFoundError,
    StorageRequestError,
    StorageResponseError,
    StorageURLRejectedError,
)

BASE_URL = "http://storage.test/v1/"


def _object(name, size=12, content_type="text/xml"):
    return {
        "name": name,
        "size": size,
        "contentType": content_type,
        "downloadUrl": f"{BASE_URL}download/{name}",
        "timeCreated": "2024-05-01T10:00:00Z",
        "updated": "2024-05-02T10:00:00Z",
    }


def _client(handler):
    return StorageClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_files():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"items": [
            _object("files/user-1/theb.xml"),
            _object("files/user-1/notes.txt", content_type="text/plain"),
        ]})

    files = await _client(handler).list_files("user-1")

    assert [f.name for f in files] == ["theb.xml", "notes.txt"]
    assert files[0].is_xml and not files[1].is_xml
    assert files[0].user_id == "user-1"
    assert files[0].created_at.year == 2024
    assert seen[0].url.params["prefix"] == "files/user-1/"

    token = seen[0].headers["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(token, options={"verify_signature": False})
    assert claims["scope"] == ["files_read"]
    assert claims["owner"] == "user-1"


@pytest.mark.asyncio
async def test_list_files_empty():
    files = await _client(lambda request: httpx.Response(200, json={})).list_files("user-1")
    assert files == []


@pytest.mark.asyncio
async def test_upload_file():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_object("files/user-1/theb.xml", size=5))

    item = await _client(handler).upload_file("user-1", "theb.xml", b"<TEI/>", "text/xml")

    assert item.name == "theb.xml"
    assert item.size == 5
    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["name"] == "files/user-1/theb.xml"
    assert request.headers["Content-Type"] == "text/xml"
    assert request.content == b"<TEI/>"


@pytest.mark.asyncio
async def test_delete_file_encodes_object_name():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(204)

    await _client(handler).delete_file("user-1", "my file.xml")

    assert seen[0].method == "DELETE"
    assert seen[0].url.raw_path.decode().endswith("/o/files%2Fuser-1%2Fmy%20file.xml")


@pytest.mark.asyncio
async def test_get_file_missing():
    client = _client(lambda request: httpx.Response(200, json={"items": []}))
    with pytest.raises(StorageNotFoundError):
        await client.get_file("user-1", "missing.xml")


@pytest.mark.asyncio
async def test_fetch_bytes_authorizes_as_owner():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"<TEI/>")

    data = await _client(handler).fetch_bytes(
        f"{BASE_URL}download/files/user-1/theb.xml", owner_id="user-1"
    )

    assert data == b"<TEI/>"
    token = seen[0].headers["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(token, options={"verify_signature": False})
    assert claims["scope"] == ["files_read"]
    assert claims["owner"] == "user-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    [
        "http://169.254.169.254/latest/meta-data",
        "https://elsewhere.example/theb.xml",
        "http://storage.test/v1-other/theb.xml",
        "http://storage.test/v1/../admin",
        "https://storage.test/v1/theb.xml",
    ],
)
async def test_fetch_bytes_refuses_urls_outside_backend(url):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"<TEI/>")

    with pytest.raises(StorageURLRejectedError):
        await _client(handler).fetch_bytes(url)
    assert seen == []


@pytest.mark.asyncio
async def test_fetch_bytes_enforces_size_limit():
    client = _client(lambda request: httpx.Response(200, content=b"x" * 2048))

    with pytest.raises(DocumentTooLargeError) as excinfo:
        await client.fetch_bytes(f"{BASE_URL}download/big.xml", max_bytes=1000)
    assert excinfo.value.limit == 1000


@pytest.mark.asyncio
async def test_fetch_bytes_stops_streaming_past_limit():
    pulled = []

    async def body():
        for _ in range(100):
            pulled.append(1)
            yield b"x" * 100

    client = _client(lambda request: httpx.Response(200, content=body()))

    with pytest.raises(DocumentTooLargeError):
        await client.fetch_bytes(f"{BASE_URL}download/big.xml", max_bytes=250)
    assert len(pulled) < 100


@pytest.mark.asyncio
async def test_fetch_bytes_size_limit_from_settings():
    client = _client(lambda request: httpx.Response(200, content=b"x" * 11))

    with patch("tei_viewer_server.storage.client.settings.max_document_bytes", 10):
        with pytest.raises(DocumentTooLargeError):
            await client.fetch_bytes(f"{BASE_URL}download/big.xml")


@pytest.mark.asyncio
async def test_fetch_bytes_at_size_limit():
    client = _client(lambda request: httpx.Response(200, content=b"x" * 1000))
    data = await client.fetch_bytes(f"{BASE_URL}download/ok.xml", max_bytes=1000)
    assert len(data) == 1000


@pytest.mark.asyncio
async def test_not_found_response():
    client = _client(lambda request: httpx.Response(404))
    with pytest.raises(StorageNotFoundError) as excinfo:
        await client.fetch_bytes(f"{BASE_URL}download/gone.xml")
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_fetch_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StorageRequestError):
        await _client(handler).fetch_bytes(f"{BASE_URL}download/a.xml")


@pytest.mark.asyncio
async def test_error_response():
    client = _client(lambda request: httpx.Response(503))
    with pytest.raises(StorageResponseError) as excinfo:
        await client.list_files("user-1")
    assert excinfo.value.status_code == 503
    assert not isinstance(excinfo.value, StorageNotFoundError)


@pytest.mark.asyncio
async def test_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StorageRequestError):
        await _client(handler).list_files("user-1")
