"""
Upload adapter: put form images into a storage bucket and hand back their
public URLs.

Object keys are ``<unix millis>-<original filename>``. Multi-image uploads
run concurrently and are all-or-nothing: if one upload fails, the images
that did get stored are removed again before the error is re-raised.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Optional, Sequence

from fastapi import UploadFile

from imageform.errors import UploadError
from imageform.services.storage import ImageStore

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "images"


@dataclass
class ImageFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    async def from_upload(cls, upload: UploadFile) -> "ImageFile":
        return cls(
            filename=upload.filename or "upload",
            content=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
        )


@dataclass(frozen=True)
class UploadedImage:
    key: str
    url: str


def make_object_key(filename: str, now_ms: Optional[int] = None) -> str:
    # Browsers may send a full client path; keep only the file name
    name = PurePosixPath(filename.replace("\\", "/")).name or "upload"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{name}"


async def upload_image(store: ImageStore, file: ImageFile, bucket_name: str = DEFAULT_BUCKET) -> UploadedImage:
    key = make_object_key(file.filename)
    try:
        await store.store(bucket_name, key, file.content, file.content_type)
    except UploadError as e:
        logger.error(f"Error uploading image '{file.filename}': {e}")
        raise
    except Exception as e:
        logger.error(f"Error uploading image '{file.filename}': {e}")
        raise UploadError(f"Upload of '{key}' to '{bucket_name}' failed: {e}") from e

    try:
        url = await store.public_url(bucket_name, key)
    except Exception as e:
        logger.error(f"Error resolving public URL for '{key}': {e}")
        await discard_images(store, [UploadedImage(key=key, url="")], bucket_name)
        if isinstance(e, UploadError):
            raise
        raise UploadError(f"Public URL for '{key}' in '{bucket_name}' failed: {e}") from e

    logger.info(f"Stored {key} in bucket {bucket_name}")
    return UploadedImage(key=key, url=url)


async def upload_images(
    store: ImageStore, files: Sequence[ImageFile], bucket_name: str = DEFAULT_BUCKET
) -> List[UploadedImage]:
    if not files:
        return []

    tasks = [asyncio.ensure_future(upload_image(store, file, bucket_name)) for file in files]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    first_error = next((t.exception() for t in tasks if t in done and t.exception() is not None), None)
    if first_error is None:
        # Results follow input order, not completion order
        return [t.result() for t in tasks]

    # Let the rest settle so nothing stored is left behind
    if pending:
        await asyncio.wait(pending)
    stored = [t.result() for t in tasks if t.exception() is None]
    logger.error(f"Error uploading multiple images ({len(stored)}/{len(files)} stored): {first_error}")
    await discard_images(store, stored, bucket_name)
    raise first_error


async def discard_images(store: ImageStore, images: Sequence[UploadedImage], bucket_name: str = DEFAULT_BUCKET) -> None:
    """Best-effort removal of objects stored for a submission that failed."""
    if not images:
        return
    keys = [image.key for image in images]
    try:
        await store.remove(bucket_name, keys)
        logger.info(f"Removed {len(keys)} orphaned object(s) from {bucket_name}")
    except Exception as e:
        # The original failure is what the caller reports; a failed cleanup is only logged
        logger.warning(f"Failed to remove orphaned objects {keys} from {bucket_name}: {e}")


async def upload_single_image(store: ImageStore, file: ImageFile, bucket_name: str = DEFAULT_BUCKET) -> str:
    uploaded = await upload_image(store, file, bucket_name)
    return uploaded.url


async def upload_multiple_images(
    store: ImageStore, files: Sequence[ImageFile], bucket_name: str = DEFAULT_BUCKET
) -> List[str]:
    uploaded = await upload_images(store, files, bucket_name)
    return [image.url for image in uploaded]
