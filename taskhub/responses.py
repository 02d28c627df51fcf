"""
TaskHub Backend — Error Response Builder
==========================================

Every failure leaves the API in one shape:

    {"success": false, "message": "...", ["errors": [...]], ["stack": "..."]}

`errors` is present only for validation failures. `stack` is present only
when ENVIRONMENT=development and an exception was passed in.
"""

import traceback
from typing import Any, Dict, List, Mapping, Optional

from starlette.background import BackgroundTasks
from starlette.responses import JSONResponse

from taskhub.config import settings


def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[Dict[str, str]]] = None,
    exc: Optional[BaseException] = None,
    headers: Optional[Mapping[str, str]] = None,
    background: Optional[BackgroundTasks] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    if exc is not None and settings.is_development:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=dict(headers) if headers else None,
        background=background,
    )
