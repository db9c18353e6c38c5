import enum
from typing import List, Optional

from pydantic import BaseModel


class SubmissionStatus(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    kind: str  # "success" or "error"
    message: str


class PreviewRef(BaseModel):
    token: str
    filename: str
    url: str


class DraftFieldsUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class DraftState(BaseModel):
    id: str
    title: str
    description: str
    single_image: Optional[PreviewRef] = None
    multiple_images: List[PreviewRef] = []
    status: SubmissionStatus
    notification: Optional[Notification] = None
    can_submit: bool
