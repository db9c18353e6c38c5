from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from pydantic import ValidationError

from imageform import schemas
from imageform.errors import DraftBusyError, DraftNotFoundError, SubmissionError
from imageform.routers.submissions import selected_files
from imageform.services.drafts import DraftStore, FormDraft, get_draft_store
from imageform.services.submissions import FAILURE_MESSAGE, SubmissionService, get_submission_service
from imageform.services.upload import ImageFile

router = APIRouter(
    prefix="/drafts",
    tags=["Drafts"]
)


def load_draft(draft_id: str, drafts: DraftStore = Depends(get_draft_store)) -> FormDraft:
    try:
        return drafts.get(draft_id)
    except DraftNotFoundError:
        raise HTTPException(status_code=404, detail="Draft not found")


def busy():
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Submission in progress")


# Mount: start an empty form
@router.post("/", response_model=schemas.DraftState, status_code=status.HTTP_201_CREATED)
def create_draft(drafts: DraftStore = Depends(get_draft_store)):
    return drafts.create().to_state()


@router.get("/{draft_id}", response_model=schemas.DraftState)
def get_draft(draft: FormDraft = Depends(load_draft)):
    return draft.to_state()


@router.patch("/{draft_id}", response_model=schemas.DraftState)
def update_draft(payload: schemas.DraftFieldsUpdate, draft: FormDraft = Depends(load_draft)):
    try:
        draft.update_fields(title=payload.title, description=payload.description)
    except DraftBusyError:
        raise busy()
    return draft.to_state()


@router.put("/{draft_id}/single-image", response_model=schemas.DraftState)
async def select_single_image(image: UploadFile = File(...), draft: FormDraft = Depends(load_draft)):
    file = await ImageFile.from_upload(image)
    try:
        draft.select_single_image(file)
    except DraftBusyError:
        raise busy()
    return draft.to_state()


@router.put("/{draft_id}/multiple-images", response_model=schemas.DraftState)
async def select_multiple_images(images: List[UploadFile] = File(...), draft: FormDraft = Depends(load_draft)):
    files = [await ImageFile.from_upload(f) for f in selected_files(images)]
    try:
        draft.select_multiple_images(files)
    except DraftBusyError:
        raise busy()
    return draft.to_state()


@router.get("/{draft_id}/previews/{token}")
def get_preview(token: str, draft: FormDraft = Depends(load_draft)):
    try:
        file = draft.preview(token)
    except KeyError:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=file.content, media_type=file.content_type)


@router.post("/{draft_id}/submit", response_model=schemas.Submission, status_code=status.HTTP_201_CREATED)
async def submit_draft(
    draft: FormDraft = Depends(load_draft),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return await draft.submit(service)
    except DraftBusyError:
        raise busy()
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=schemas.field_errors(e))
    except SubmissionError:
        # Draft keeps its fields and files for a retry
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=FAILURE_MESSAGE)


@router.post("/{draft_id}/acknowledge", response_model=schemas.DraftState)
def acknowledge(draft: FormDraft = Depends(load_draft)):
    draft.acknowledge()
    return draft.to_state()


# Unmount: drop the draft and its previews
@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_draft(draft_id: str, drafts: DraftStore = Depends(get_draft_store)):
    try:
        drafts.discard(draft_id)
    except DraftNotFoundError:
        raise HTTPException(status_code=404, detail="Draft not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
