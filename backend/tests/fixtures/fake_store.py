"""In-memory ImageStore used in place of Supabase storage."""
import asyncio
from typing import Dict, List, Set, Tuple

from imageform.errors import UploadError

PUBLIC_BASE_URL = "https://test-project.supabase.co/storage/v1/object/public"


class FakeImageStore:
    def __init__(self):
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.store_calls: List[Tuple[str, str]] = []
        self.removed: List[Tuple[str, str]] = []
        self.fail_on: Set[str] = set()      # original filenames to reject
        self.delays: Dict[str, float] = {}  # original filename -> seconds
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def _original_name(key: str) -> str:
        return key.split("-", 1)[1]

    async def store(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        self.store_calls.append((bucket, key))
        name = self._original_name(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(name, 0))
            if name in self.fail_on:
                raise UploadError(f"Storage rejected {key}")
            if (bucket, key) in self.objects:
                raise UploadError("The resource already exists")
            self.objects[(bucket, key)] = data
        finally:
            self.in_flight -= 1

    async def public_url(self, bucket: str, key: str) -> str:
        return f"{PUBLIC_BASE_URL}/{bucket}/{key}"

    async def remove(self, bucket: str, keys: List[str]) -> None:
        for key in keys:
            self.objects.pop((bucket, key), None)
            self.removed.append((bucket, key))
