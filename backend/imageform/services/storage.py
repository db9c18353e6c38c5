"""
Object storage boundary.

The upload adapter only needs three capabilities from a storage backend:
put bytes under a key, resolve a key to a public URL, and remove keys.
``ImageStore`` names them so tests can swap in an in-memory store;
``SupabaseImageStore`` implements them with the Supabase storage API.
"""

import logging
from functools import lru_cache
from typing import List, Protocol

from fastapi import Depends
from starlette.concurrency import run_in_threadpool
from supabase import Client, create_client

from imageform.config import Settings, get_settings
from imageform.errors import UploadError

logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    async def store(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        ...

    async def public_url(self, bucket: str, key: str) -> str:
        ...

    async def remove(self, bucket: str, keys: List[str]) -> None:
        ...


class SupabaseImageStore:
    """ImageStore backed by a (synchronous) Supabase client.

    Each SDK call blocks on HTTP, so it runs in the thread pool; that is what
    lets several uploads overlap when awaited together.
    """

    def __init__(self, client: Client):
        self.client = client

    async def store(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            await run_in_threadpool(
                self.client.storage.from_(bucket).upload,
                path=key,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as e:
            raise UploadError(f"Supabase upload of '{key}' to '{bucket}' failed: {e}") from e

    async def public_url(self, bucket: str, key: str) -> str:
        return await run_in_threadpool(self.client.storage.from_(bucket).get_public_url, key)

    async def remove(self, bucket: str, keys: List[str]) -> None:
        # Supabase-py uses remove() which takes a list of paths
        await run_in_threadpool(self.client.storage.from_(bucket).remove, keys)


@lru_cache()
def get_supabase_client(url: str, key: str) -> Client:
    return create_client(url, key)


def get_image_store(settings: Settings = Depends(get_settings)) -> ImageStore:
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for storage uploads")
    return SupabaseImageStore(get_supabase_client(settings.supabase_url, settings.supabase_service_key))
