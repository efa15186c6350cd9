"""Turn request failures into ``{"success": false, ...}`` responses."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from engine.errors import AttackError, MalformedRequest, MissingField

logger = logging.getLogger("stormsheet.attacks")


def failure_response(error: AttackError, status_code: int = 400) -> JSONResponse:
    """Build the failure body shared by every endpoint."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error.message, "code": error.code},
    )


def classify_validation_error(exc: RequestValidationError) -> AttackError:
    """Map a decoding failure onto MissingField or MalformedRequest.

    A request counts as missing fields only when every problem is an absent
    named field; an absent or undecodable body is malformed.
    """
    errors = exc.errors()
    missing = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if err.get("type") != "missing" or len(loc) < 2:
            break
        missing.append(".".join(loc[1:]))
    else:
        if missing:
            return MissingField(missing)

    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}"
        for err in errors
    )
    return MalformedRequest(f"Malformed request: {details}")


async def attack_error_handler(request: Request, exc: AttackError) -> JSONResponse:
    logger.info(f"Rejected {request.method} {request.url.path}: [{exc.code}] {exc.message}")
    return failure_response(exc)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    error = classify_validation_error(exc)
    logger.info(f"Rejected {request.method} {request.url.path}: [{error.code}] {error.message}")
    return failure_response(error)
