from imageform.models.submission import FormSubmission

__all__ = ["FormSubmission"]
