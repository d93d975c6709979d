"""
Review pipeline exception hierarchy.

Every error the pipeline surfaces to a caller derives from ReviewError, which
carries the HTTP status and error code used by the API exception handlers.
"""


class ReviewError(Exception):
    """Base exception for review pipeline errors."""

    status_code: int = 500
    error_code: str = "REVIEW_ERROR"


class ApplicationNotFound(ReviewError):
    """Raised when an application does not exist."""

    status_code = 404
    error_code = "APPLICATION_NOT_FOUND"

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"Application {application_id} not found")


class ReviewRecordNotFound(ReviewError):
    """Raised when a review record does not exist."""

    status_code = 404
    error_code = "REVIEW_NOT_FOUND"

    def __init__(self, review_id: str):
        self.review_id = review_id
        super().__init__(f"Review record {review_id} not found")


class UnknownStage(ReviewError, ValueError):
    """Raised when a stage type is not one of the six review stages."""

    status_code = 400
    error_code = "UNKNOWN_STAGE"

    def __init__(self, stage_type: str):
        self.stage_type = stage_type
        super().__init__(f"Unknown review type: {stage_type}")


class EvaluatorFailure(ReviewError):
    """Raised when a stage evaluator fails while scoring an application."""

    error_code = "EVALUATOR_FAILURE"


class RemoteJudgeError(ReviewError):
    """Raised when the remote similarity judge fails or answers malformed JSON."""

    error_code = "REMOTE_JUDGE_ERROR"


class KeywordTablesError(ReviewError):
    """Raised when keyword tables or the seed corpus cannot be loaded."""

    error_code = "CONFIGURATION_ERROR"
