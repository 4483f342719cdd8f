from __future__ import annotations

from typing import Any


class PipelineError(RuntimeError):
    """Base for failures surfaced to API callers.

    Every subclass carries a stable ``error_code`` discriminator and an HTTP status so the
    exception handler in ``pagebuilder.main`` can render a uniform body.
    """

    error_code = "pipeline_error"
    status_code = 500

    def __init__(self, *, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def payload(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error_code, "detail": self.message}


class InvalidRequestError(PipelineError):
    error_code = "invalid_request"
    status_code = 400
