"""
Server-held form drafts.

A draft is what the browser form holds between mount and submit: the text
fields, the selected files, one preview per selected file, and where the
submit currently stands. Previews are kept in a ``PreviewRegistry`` and are
released explicitly whenever the file they show is replaced, the draft is
reset after a successful submit, or the draft is discarded.

Submit status moves ``idle -> submitting -> success | error``; any later edit
(or ``acknowledge``) brings it back to ``idle``. A draft that is
``submitting`` refuses edits and a second submit.
"""

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fastapi import Request

from imageform.errors import DraftBusyError, DraftNotFoundError
from imageform.schemas import DraftState, Notification, PreviewRef, Submission, SubmissionForm, SubmissionStatus
from imageform.services.submissions import FAILURE_MESSAGE, SUCCESS_MESSAGE, SubmissionService
from imageform.services.upload import ImageFile

logger = logging.getLogger(__name__)


class PreviewRegistry:
    def __init__(self):
        self._previews: Dict[str, ImageFile] = {}

    def create(self, file: ImageFile) -> str:
        token = uuid.uuid4().hex
        self._previews[token] = file
        return token

    def get(self, token: str) -> ImageFile:
        return self._previews[token]

    def release(self, token: Optional[str]) -> None:
        if token is not None:
            self._previews.pop(token, None)

    def __contains__(self, token: str) -> bool:
        return token in self._previews

    def __len__(self) -> int:
        return len(self._previews)


class FormDraft:
    def __init__(self, draft_id: str, previews: PreviewRegistry):
        self.id = draft_id
        self.previews = previews
        self.title = ""
        self.description = ""
        self.single_image: Optional[ImageFile] = None
        self.single_preview: Optional[str] = None
        self.multiple_images: List[ImageFile] = []
        self.multiple_previews: List[str] = []
        self.status = SubmissionStatus.IDLE
        self.notification: Optional[Notification] = None
        self.touched_at = 0.0

    @property
    def can_submit(self) -> bool:
        return self.status != SubmissionStatus.SUBMITTING

    def _begin_edit(self) -> None:
        if self.status == SubmissionStatus.SUBMITTING:
            raise DraftBusyError(f"Draft {self.id} is being submitted")
        self.acknowledge()

    def acknowledge(self) -> None:
        if self.status in (SubmissionStatus.SUCCESS, SubmissionStatus.ERROR):
            self.status = SubmissionStatus.IDLE
            self.notification = None

    def update_fields(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        self._begin_edit()
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description

    def select_single_image(self, file: ImageFile) -> None:
        self._begin_edit()
        self.previews.release(self.single_preview)
        self.single_image = file
        self.single_preview = self.previews.create(file)

    def select_multiple_images(self, files: Sequence[ImageFile]) -> None:
        self._begin_edit()
        self._release_multiple()
        self.multiple_images = list(files)
        self.multiple_previews = [self.previews.create(file) for file in self.multiple_images]

    def _release_multiple(self) -> None:
        for token in self.multiple_previews:
            self.previews.release(token)
        self.multiple_previews = []

    def reset(self) -> None:
        self.previews.release(self.single_preview)
        self._release_multiple()
        self.title = ""
        self.description = ""
        self.single_image = None
        self.single_preview = None
        self.multiple_images = []

    def begin_submit(self) -> Tuple[SubmissionForm, Optional[ImageFile], List[ImageFile]]:
        if self.status == SubmissionStatus.SUBMITTING:
            raise DraftBusyError(f"Draft {self.id} is already being submitted")
        # Raises pydantic.ValidationError before anything is uploaded
        form = SubmissionForm(title=self.title, description=self.description)
        self.acknowledge()
        self.status = SubmissionStatus.SUBMITTING
        return form, self.single_image, list(self.multiple_images)

    async def submit(self, service: SubmissionService) -> Submission:
        form, single_image, multiple_images = self.begin_submit()
        try:
            submission = await service.submit(form, single_image, multiple_images)
        except Exception:
            # Keep everything the user entered so they can retry
            self.status = SubmissionStatus.ERROR
            self.notification = Notification(kind="error", message=FAILURE_MESSAGE)
            raise
        self.reset()
        self.status = SubmissionStatus.SUCCESS
        self.notification = Notification(kind="success", message=SUCCESS_MESSAGE)
        return submission

    def preview(self, token: str) -> ImageFile:
        if token != self.single_preview and token not in self.multiple_previews:
            raise KeyError(token)
        return self.previews.get(token)

    def preview_url(self, token: str) -> str:
        return f"/drafts/{self.id}/previews/{token}"

    def to_state(self) -> DraftState:
        single = None
        if self.single_image is not None and self.single_preview is not None:
            single = PreviewRef(
                token=self.single_preview,
                filename=self.single_image.filename,
                url=self.preview_url(self.single_preview),
            )
        multiple = [
            PreviewRef(token=token, filename=file.filename, url=self.preview_url(token))
            for file, token in zip(self.multiple_images, self.multiple_previews)
        ]
        return DraftState(
            id=self.id,
            title=self.title,
            description=self.description,
            single_image=single,
            multiple_images=multiple,
            status=self.status,
            notification=self.notification,
            can_submit=self.can_submit,
        )


class DraftStore:
    """Open drafts, keyed by id.

    A browser that goes away never discards its draft, so drafts idle for
    longer than ``idle_seconds`` are dropped, and at most ``max_drafts`` are
    kept (least recently used go first). Drafts that are submitting stay.
    """

    def __init__(self, max_drafts: int = 1000, idle_seconds: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.previews = PreviewRegistry()
        self.max_drafts = max_drafts
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._drafts: Dict[str, FormDraft] = {}

    def create(self) -> FormDraft:
        self.evict_idle()
        evictable = sorted(
            (d for d in self._drafts.values() if d.status != SubmissionStatus.SUBMITTING),
            key=lambda d: d.touched_at,
        )
        while evictable and len(self._drafts) >= self.max_drafts:
            self._drop(evictable.pop(0))

        draft = FormDraft(uuid.uuid4().hex, self.previews)
        draft.touched_at = self.clock()
        self._drafts[draft.id] = draft
        logger.debug(f"Created draft {draft.id}")
        return draft

    def get(self, draft_id: str) -> FormDraft:
        self.evict_idle()
        try:
            draft = self._drafts[draft_id]
        except KeyError:
            raise DraftNotFoundError(draft_id) from None
        draft.touched_at = self.clock()
        return draft

    def discard(self, draft_id: str) -> None:
        self._drop(self.get(draft_id))

    def evict_idle(self) -> int:
        cutoff = self.clock() - self.idle_seconds
        idle = [
            d for d in self._drafts.values()
            if d.touched_at <= cutoff and d.status != SubmissionStatus.SUBMITTING
        ]
        for draft in idle:
            self._drop(draft)
        if idle:
            logger.info(f"Evicted {len(idle)} idle draft(s)")
        return len(idle)

    def _drop(self, draft: FormDraft) -> None:
        draft.reset()
        del self._drafts[draft.id]
        logger.debug(f"Discarded draft {draft.id}")

    def __len__(self) -> int:
        return len(self._drafts)


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.drafts
