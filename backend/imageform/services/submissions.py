"""
Submission workflow: upload the images, insert the row, invalidate the list.

``SubmissionFeed`` is the cached list of submissions that the list views
read from. It fetches on first read, keeps serving the cached rows, and
refetches once a successful submit has marked it stale.
"""

import enum
import logging
from typing import List, Optional, Sequence

from fastapi import Depends, Request
from starlette.concurrency import run_in_threadpool

from imageform.config import Settings, get_settings
from imageform.errors import FetchError, SubmissionError
from imageform.schemas import Submission, SubmissionForm
from imageform.services.repository import SubmissionRepository, get_repository
from imageform.services.storage import ImageStore, get_image_store
from imageform.services.upload import ImageFile, UploadedImage, discard_images, upload_image, upload_images

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Form submitted successfully!"
FAILURE_MESSAGE = "Failed to submit form. Please try again."
FETCH_ERROR_MESSAGE = "Error loading data"


class FeedState(str, enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class SubmissionFeed:
    def __init__(self):
        self._items: Optional[List[Submission]] = None
        # Bumped by every mark_stale(); a read only counts as fresh if it
        # started after the latest bump
        self._generation = 0
        self._fetched_generation: Optional[int] = None
        self._failed = False

    @property
    def state(self) -> FeedState:
        if self._failed:
            return FeedState.ERROR
        if self._items is None:
            return FeedState.LOADING
        return FeedState.READY

    @property
    def stale(self) -> bool:
        return self._items is None or self._fetched_generation != self._generation

    def mark_stale(self) -> None:
        self._generation += 1

    async def read(self, repository: SubmissionRepository) -> List[Submission]:
        if self.stale:
            generation = self._generation
            try:
                rows = await run_in_threadpool(repository.list_all)
            except FetchError:
                self._failed = True
                raise
            items = [Submission.model_validate(row) for row in rows]
            self._failed = False
            # A submit that landed while this read ran keeps the feed stale;
            # an older read finishing late never replaces a newer result
            if self._fetched_generation is None or generation >= self._fetched_generation:
                self._items = items
                self._fetched_generation = generation
            return items
        return list(self._items)


class SubmissionService:
    def __init__(
        self,
        store: ImageStore,
        repository: SubmissionRepository,
        feed: SubmissionFeed,
        bucket_name: str = "images",
    ):
        self.store = store
        self.repository = repository
        self.feed = feed
        self.bucket_name = bucket_name

    async def submit(
        self,
        form: SubmissionForm,
        single_image: Optional[ImageFile] = None,
        multiple_images: Sequence[ImageFile] = (),
    ) -> Submission:
        uploaded: List[UploadedImage] = []
        try:
            single_image_url = ""
            if single_image is not None:
                image = await upload_image(self.store, single_image, self.bucket_name)
                uploaded.append(image)
                single_image_url = image.url

            multiple_image_urls: List[str] = []
            if multiple_images:
                images = await upload_images(self.store, multiple_images, self.bucket_name)
                uploaded.extend(images)
                multiple_image_urls = [image.url for image in images]

            row = await run_in_threadpool(
                self.repository.insert,
                form.title,
                form.description,
                single_image_url,
                multiple_image_urls,
            )
        except SubmissionError as e:
            logger.error(f"Submission error: {e}")
            await discard_images(self.store, uploaded, self.bucket_name)
            raise

        self.feed.mark_stale()
        logger.info(f"Stored submission {row.id} with {len(uploaded)} image(s)")
        return Submission.model_validate(row)


def get_feed(request: Request) -> SubmissionFeed:
    return request.app.state.feed


def get_submission_service(
    store: ImageStore = Depends(get_image_store),
    repository: SubmissionRepository = Depends(get_repository),
    feed: SubmissionFeed = Depends(get_feed),
    settings: Settings = Depends(get_settings),
) -> SubmissionService:
    return SubmissionService(store, repository, feed, bucket_name=settings.storage_bucket)
