from unittest.mock import MagicMock

import pytest

from imageform.errors import UploadError
from imageform.services.storage import SupabaseImageStore


@pytest.fixture
def client():
    client = MagicMock()
    client.storage.from_.return_value.get_public_url.return_value = (
        "https://test-project.supabase.co/storage/v1/object/public/images/1-a.jpg"
    )
    return client


async def test__store__uploads_with_content_type(client):
    await SupabaseImageStore(client).store("images", "1-a.jpg", b"bytes", "image/jpeg")

    client.storage.from_.assert_called_with("images")
    client.storage.from_.return_value.upload.assert_called_once_with(
        path="1-a.jpg", file=b"bytes", file_options={"content-type": "image/jpeg"}
    )


async def test__store__sdk_error_becomes_upload_error(client):
    client.storage.from_.return_value.upload.side_effect = Exception("Bucket not found")

    with pytest.raises(UploadError, match="Bucket not found"):
        await SupabaseImageStore(client).store("images", "1-a.jpg", b"bytes", "image/jpeg")


async def test__public_url(client):
    url = await SupabaseImageStore(client).public_url("images", "1-a.jpg")

    assert url.endswith("/images/1-a.jpg")
    client.storage.from_.return_value.get_public_url.assert_called_once_with("1-a.jpg")


async def test__remove(client):
    await SupabaseImageStore(client).remove("images", ["1-a.jpg", "2-b.jpg"])

    client.storage.from_.return_value.remove.assert_called_once_with(["1-a.jpg", "2-b.jpg"])
