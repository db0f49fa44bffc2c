from typing import Any


class ApiError(Exception):
    """Base for errors rendered as a ``{message, code, data?}`` response."""

    status_code = 500

    def __init__(self, message: str, data: Any = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "code": self.status_code}
        if self.data is not None:
            body["data"] = self.data
        return body


class ValidationError(ApiError):
    status_code = 400


class AuthenticityError(ApiError):
    status_code = 400


class UpstreamError(ApiError):
    status_code = 500
