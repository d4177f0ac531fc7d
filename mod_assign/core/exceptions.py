from fastapi import status


class AssignError(Exception):
    """Base class for errors that abort an assignment action."""

    status_code = status.HTTP_400_BAD_REQUEST
    errorcode = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermissionDenied(AssignError):
    status_code = status.HTTP_403_FORBIDDEN
    errorcode = "nopermission"

    def __init__(self, capability: str, message: str | None = None):
        super().__init__(message or f"Missing capability: {capability}")
        self.capability = capability


class NotFound(AssignError):
    status_code = status.HTTP_404_NOT_FOUND
    errorcode = "notfound"


class LockedSubmission(AssignError):
    status_code = status.HTTP_423_LOCKED
    errorcode = "submissionslocked"

    def __init__(self, message: str = "Submissions for this user are locked"):
        super().__init__(message)


class SubmissionsClosed(AssignError):
    status_code = status.HTTP_409_CONFLICT
    errorcode = "submissionsclosed"


class ValidationFailed(AssignError):
    status_code = status.HTTP_400_BAD_REQUEST
    errorcode = "invalidparameter"
