ANALYSIS_LIMIT_MESSAGE = (
    "You've reached your monthly limit. Upgrade to Creator for unlimited analyses."
)


class AnalysisServiceError(Exception):
    """라우터가 {success: false, error: {code, message}} 응답으로 바꾸는 예외의 기반 클래스."""

    code = "SERVER_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(AnalysisServiceError):
    status_code = 401
    default_message = "Unauthorized"


class AnalysisLimitError(AnalysisServiceError):
    code = "ANALYSIS_LIMIT"
    status_code = 403
    default_message = ANALYSIS_LIMIT_MESSAGE


class InvalidRequestError(AnalysisServiceError, ValueError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request body"


class ThumbnailCountError(InvalidRequestError):
    # 기존 클라이언트 호환을 위해 개수 오류는 SERVER_ERROR 코드로 응답한다.
    code = "SERVER_ERROR"
    default_message = "Must provide 2-4 thumbnails"


class NotFoundError(AnalysisServiceError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class VisionModelError(AnalysisServiceError):
    pass


class PersistenceError(AnalysisServiceError):
    pass
