"""Response envelope shared by every storefront route"""

from typing import Any, Optional

from fastapi.responses import JSONResponse


def ok(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def fail(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )
