from imageform.schemas.draft import DraftFieldsUpdate, DraftState, Notification, PreviewRef, SubmissionStatus
from imageform.schemas.submission import Submission, SubmissionForm, field_errors

__all__ = [
    "DraftFieldsUpdate",
    "DraftState",
    "Notification",
    "PreviewRef",
    "Submission",
    "SubmissionForm",
    "SubmissionStatus",
    "field_errors",
]
