from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ValidationError, field_validator


# Text fields of the form; presence is the only rule
class SubmissionForm(BaseModel):
    title: str
    description: str

    @field_validator("title", "description")
    @classmethod
    def must_be_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("This field is required")
        return value


# Properties returned to the client
class Submission(BaseModel):
    id: int
    title: str
    description: str
    single_image_url: str
    multiple_image_urls: List[str]
    created_at: datetime

    # Read straight from the SQLAlchemy row
    class Config:
        from_attributes = True


def field_errors(exc: ValidationError) -> Dict[str, str]:
    """Map a SubmissionForm validation error to {field: message}."""
    errors = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        cause = error.get("ctx", {}).get("error")
        errors[field] = str(cause) if cause is not None else error["msg"]
    return errors
