class SubmissionError(Exception):
    """Base class for failures talking to the storage or database backend."""


class UploadError(SubmissionError):
    """Storing an image in the bucket failed."""


class InsertError(SubmissionError):
    """Persisting a submission row failed."""


class FetchError(SubmissionError):
    """Reading the submission list failed."""


class DraftNotFoundError(LookupError):
    pass


class DraftBusyError(RuntimeError):
    """A submit is already in flight for this draft."""
