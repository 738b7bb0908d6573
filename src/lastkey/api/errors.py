"""RFC 7807 problem details for release engine errors.

Each error family maps to one HTTP status:

- ReleaseValidationError -> 422
- ReleaseLookupError -> 404
- ReleaseForbiddenError -> 403
- ReleaseConflictError -> 409
"""

from __future__ import annotations

import re

from fastapi import HTTPException, Request

from lastkey.domain.errors.base import (
    ReleaseConflictError,
    ReleaseForbiddenError,
    ReleaseLookupError,
    ReleaseValidationError,
)
from lastkey.domain.exceptions import LastKeyError

PROBLEM_TYPE_PREFIX = "urn:lastkey:release"

_FAMILY_STATUS: tuple[tuple[type[LastKeyError], int], ...] = (
    (ReleaseValidationError, 422),
    (ReleaseLookupError, 404),
    (ReleaseForbiddenError, 403),
    (ReleaseConflictError, 409),
)


def status_for_error(error: LastKeyError) -> int:
    """HTTP status for a domain error, 500 for anything outside the families."""
    for family, status in _FAMILY_STATUS:
        if isinstance(error, family):
            return status
    return 500


def _slug(error: LastKeyError) -> str:
    name = type(error).__name__.removesuffix("Error")
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def _title(error: LastKeyError) -> str:
    name = type(error).__name__.removesuffix("Error")
    return re.sub(r"(?<!^)(?=[A-Z])", " ", name)


def problem_from_error(error: LastKeyError, request: Request) -> HTTPException:
    """Build the HTTPException carrying an RFC 7807 body for ``error``.

    Usage:
        except LastKeyError as e:
            raise problem_from_error(e, request) from None
    """
    status = status_for_error(error)
    return HTTPException(
        status_code=status,
        detail={
            "type": f"{PROBLEM_TYPE_PREFIX}:{_slug(error)}",
            "title": _title(error),
            "status": status,
            "detail": str(error),
            "instance": str(request.url),
        },
    )
