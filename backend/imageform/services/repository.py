import logging
from typing import List, Sequence

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from imageform import models
from imageform.database import get_db
from imageform.errors import FetchError, InsertError

logger = logging.getLogger(__name__)


class SubmissionRepository:
    """Reads and writes rows of the form_submissions table."""

    def __init__(self, db: Session):
        self.db = db

    def insert(
        self,
        title: str,
        description: str,
        single_image_url: str = "",
        multiple_image_urls: Sequence[str] = (),
    ) -> models.FormSubmission:
        row = models.FormSubmission(
            title=title,
            description=description,
            single_image_url=single_image_url,
            multiple_image_urls=list(multiple_image_urls),
        )
        try:
            self.db.add(row)
            self.db.commit()
            # Pick up id and created_at assigned by the database
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Inserting submission failed: {e}")
            raise InsertError(str(e)) from e
        return row

    def list_all(self) -> List[models.FormSubmission]:
        try:
            # Newest first
            return (
                self.db.query(models.FormSubmission)
                .order_by(models.FormSubmission.created_at.desc(), models.FormSubmission.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Fetching submissions failed: {e}")
            raise FetchError(str(e)) from e


def get_repository(db: Session = Depends(get_db)) -> SubmissionRepository:
    return SubmissionRepository(db)
