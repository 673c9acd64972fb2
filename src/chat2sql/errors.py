from typing import Optional


class Chat2SqlError(Exception):
    pass


class ServiceError(Chat2SqlError):
    """요청을 더 진행할 수 없는 오류. HTTP 500 `{error, details}` 로 응답됨"""

    error = "An error occurred while processing your request"

    def __init__(self, details: Optional[str] = None, error: Optional[str] = None):
        self.details = details
        if error is not None:
            self.error = error
        super().__init__(details or self.error)


class IntrospectionError(ServiceError):
    error = "Failed to get schema"


class GenerationUnavailable(ServiceError):
    error = "Gemini AI not initialized"


class DatabaseUnavailable(ServiceError):
    error = "Database not connected"


class GenerationError(ServiceError):
    error = "An error occurred while processing your request"


class GenerationTimeout(Chat2SqlError):
    """LLM 응답 시간 초과. 챗 응답의 error 필드로 전달됨"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"no response within {timeout:g} seconds")
