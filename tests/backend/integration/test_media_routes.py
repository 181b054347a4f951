import pytest

from matrix_mock.services import media


pytestmark = pytest.mark.asyncio

MEDIA = "/s1/_matrix/media/r0"


async def test_upload_registers_content_uri(client, create_user, auth_header_factory):
    await create_user("alice", "secret")
    headers = await auth_header_factory("alice", "secret")

    resp = await client.post(
        f"{MEDIA}/upload", headers=headers | {"Content-Type": "image/png"}, content=b"\x89PNG..."
    )
    assert resp.status_code == 200
    uri = resp.json()["content_uri"]
    assert uri.startswith("mxc://testserver/")

    entry = await media.lookup_media("s1", uri)
    assert entry is not None
    assert entry.content_type == "image/png"
    assert await media.lookup_media("s2", uri) is None


async def test_upload_requires_token(client):
    resp = await client.post(f"{MEDIA}/upload", content=b"data")
    assert resp.status_code == 401
