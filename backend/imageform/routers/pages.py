from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from imageform import schemas
from imageform.errors import FetchError, SubmissionError
from imageform.services.repository import SubmissionRepository, get_repository
from imageform.services.submissions import (
    FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    SubmissionFeed,
    SubmissionService,
    get_feed,
    get_submission_service,
)
from imageform.services.upload import ImageFile
from imageform.views import render_page

router = APIRouter(tags=["Pages"])


async def read_files(values: List[object]) -> List[ImageFile]:
    return [
        await ImageFile.from_upload(value)
        for value in values
        if isinstance(value, UploadFile) and value.filename
    ]


async def render(
    repository: SubmissionRepository,
    feed: SubmissionFeed,
    status_code: int = status.HTTP_200_OK,
    **kwargs,
) -> HTMLResponse:
    try:
        submissions = await feed.read(repository)
    except FetchError:
        submissions = []
    return HTMLResponse(render_page(feed.state, submissions, **kwargs), status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def form_page(
    notice: Optional[str] = None,
    repository: SubmissionRepository = Depends(get_repository),
    feed: SubmissionFeed = Depends(get_feed),
):
    notification = None
    if notice == "success":
        notification = schemas.Notification(kind="success", message=SUCCESS_MESSAGE)
    return await render(repository, feed, notification=notification)


@router.post("/", response_class=HTMLResponse)
async def submit_form(
    request: Request,
    repository: SubmissionRepository = Depends(get_repository),
    feed: SubmissionFeed = Depends(get_feed),
    service: SubmissionService = Depends(get_submission_service),
):
    data = await request.form()
    values = {
        "title": str(data.get("title") or ""),
        "description": str(data.get("description") or ""),
    }

    try:
        form = schemas.SubmissionForm(**values)
    except ValidationError as e:
        return await render(
            repository, feed, status.HTTP_422_UNPROCESSABLE_ENTITY,
            values=values, errors=schemas.field_errors(e),
        )

    single = await read_files([data.get("single_image")])
    multiple = await read_files(data.getlist("multiple_images"))

    try:
        await service.submit(form, single[0] if single else None, multiple)
    except SubmissionError:
        # Keep what the user typed so they can try again
        return await render(
            repository, feed, status.HTTP_502_BAD_GATEWAY,
            values=values,
            notification=schemas.Notification(kind="error", message=FAILURE_MESSAGE),
        )

    # Post/redirect/get so a reload does not resubmit
    return RedirectResponse(url="/?notice=success", status_code=status.HTTP_303_SEE_OTHER)
