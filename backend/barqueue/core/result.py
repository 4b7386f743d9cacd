"""Command results.

Order commands (mark ready, send reminder) return a ``CommandResult``
instead of raising, so every route renders outcomes the same way:

    result = await service.send_reminder(order_id)
    return result.to_response()

``Success`` and ``Failure`` both carry the HTTP status to use. A gateway
failure after a committed state change is a ``Failure`` with status 200,
because the state change itself stands.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from fastapi.responses import JSONResponse

from barqueue.core.responses import error_response, ok_response


@dataclass(frozen=True)
class Success:
    payload: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 200

    def to_response(self) -> JSONResponse:
        return ok_response(status_code=self.status_code, **self.payload)


@dataclass(frozen=True)
class Failure:
    error: str
    reason: Optional[str] = None
    status_code: int = 400
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> JSONResponse:
        extra = dict(self.payload)
        if self.reason:
            extra["reason"] = self.reason
        return error_response(self.status_code, self.error, **extra)


CommandResult = Union[Success, Failure]
