"""Error kinds raised by the submission lifecycle"""

from fastapi import status


class QpySubmissionError(Exception):
    """Base class; carries a machine-readable code and an HTTP status for the hook API."""

    code = "QPY_SUBMISSION_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QuestionNotConfigured(QpySubmissionError):
    """No question reference resolves for the assignment."""

    code = "QUESTION_NOT_CONFIGURED"
    status_code = status.HTTP_409_CONFLICT


class LinkNotFound(QpySubmissionError):
    """An operation needed a submission's question usage but there is none."""

    code = "LINK_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ProtocolViolation(QpySubmissionError):
    """Restore calls arrived out of order."""

    code = "PROTOCOL_VIOLATION"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MappingNotFound(QpySubmissionError):
    """A restore could not map an archived id into the new id space."""

    code = "MAPPING_NOT_FOUND"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class QuestionEngineError(QpySubmissionError):
    """The question engine rejected or failed a request."""

    code = "QUESTION_ENGINE_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


class RestoreConflict(QpySubmissionError):
    """The target assignment already holds the rows a restore would write."""

    code = "RESTORE_CONFLICT"
    status_code = status.HTTP_409_CONFLICT
