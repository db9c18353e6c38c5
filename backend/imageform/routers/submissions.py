from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from imageform import schemas
from imageform.errors import FetchError, SubmissionError
from imageform.services.repository import SubmissionRepository, get_repository
from imageform.services.submissions import (
    FAILURE_MESSAGE,
    FETCH_ERROR_MESSAGE,
    SubmissionFeed,
    SubmissionService,
    get_feed,
    get_submission_service,
)
from imageform.services.upload import ImageFile

router = APIRouter(
    prefix="/submissions",
    tags=["Submissions"]
)


def selected_files(files: Optional[List[UploadFile]]) -> List[UploadFile]:
    # An empty file input still posts a part, with no filename
    return [f for f in files or [] if f is not None and f.filename]


@router.get("/", response_model=List[schemas.Submission])
async def get_submissions(
    repository: SubmissionRepository = Depends(get_repository),
    feed: SubmissionFeed = Depends(get_feed),
):
    # Newest first
    try:
        return await feed.read(repository)
    except FetchError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=FETCH_ERROR_MESSAGE)


@router.post("/", response_model=schemas.Submission, status_code=status.HTTP_201_CREATED)
async def create_submission(
    title: str = Form(""),
    description: str = Form(""),
    single_image: Optional[UploadFile] = File(None),
    multiple_images: Optional[List[UploadFile]] = File(None),
    service: SubmissionService = Depends(get_submission_service),
):
    # 1. Required fields first, nothing is uploaded for an invalid form
    try:
        form = schemas.SubmissionForm(title=title, description=description)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=schemas.field_errors(e))

    # 2. Read the files into memory
    single = selected_files([single_image])
    single_file = await ImageFile.from_upload(single[0]) if single else None
    multiple_files = [await ImageFile.from_upload(f) for f in selected_files(multiple_images)]

    # 3. Upload, then insert the row
    try:
        return await service.submit(form, single_file, multiple_files)
    except SubmissionError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=FAILURE_MESSAGE)
