"""
Error taxonomy for guide generation.
What it defines:
- ValidationError: bad user input, raised before any network call
- TransportError: non-success HTTP status or network failure
- FormatError: model output that is not a valid repair plan

And, the main purpose:
One place the API layer maps to HTTP status codes.
Missing credentials are NOT an error: they switch to fallback behaviour.
"""


class GuideError(RuntimeError):
    pass


class ValidationError(GuideError):
    pass


class FileTooLarge(ValidationError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Image must be {limit // (1024 * 1024)} MB or smaller (got {size} bytes)")
        self.size = size
        self.limit = limit


class TransportError(GuideError):
    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FormatError(GuideError):
    def __init__(self, message: str, raw_text: str = "", violation: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
        self.violation = violation


class EmptyResponse(FormatError):
    pass


class MalformedPlan(FormatError):
    pass
