from __future__ import annotations


class AppError(Exception):
    """Base error class for application exceptions."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(AppError):
    pass


class ExtractionError(AppError):
    def __init__(self, reason: str, *, cause: BaseException | None = None):
        message = reason if cause is None else f"{reason}: {cause}"
        super().__init__(message)
        self.reason = reason
        self.cause = cause


class SegmentationError(AppError):
    def __init__(self, message: str, *, upstream_body: str | None = None):
        super().__init__(message)
        self.upstream_body = upstream_body


class UpstreamError(AppError):
    """A remote API answered with a non-success status or could not be reached."""

    def __init__(self, message: str, *, upstream_status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class RunError(AppError):
    def __init__(self, status: str, *, run_id: str | None = None):
        super().__init__("Assistant run failed")
        self.status = status
        self.run_id = run_id


class RunTimeoutError(AppError):
    def __init__(self, run_id: str, status: str, elapsed: float):
        super().__init__(f"Assistant run {run_id} still {status} after {elapsed:.1f}s")
        self.run_id = run_id
        self.status = status
        self.elapsed = elapsed


class SynthesisError(AppError):
    pass
