"""Error families for the release orchestration engine.

Every error raised by the engine belongs to exactly one family. The family
decides how a caller should react and how the API maps it to a status code:

- ReleaseValidationError: malformed input, caller's fault, never retried.
- ReleaseConflictError: the request contradicts the current state of a
  release or confirmation. Not retried, the conflict is the truth.
- ReleaseLookupError: an unknown release, vault or rule set. Terminal.
- ReleaseForbiddenError: the actor lacks the role the operation needs.
"""

from __future__ import annotations

from lastkey.domain.exceptions import LastKeyError


class ReleaseValidationError(LastKeyError):
    """Raised when input to an engine operation is missing or malformed."""


class ReleaseConflictError(LastKeyError):
    """Raised when an operation conflicts with persisted release state."""


class ReleaseLookupError(LastKeyError):
    """Raised when a referenced release, vault or rule set does not exist."""


class ReleaseForbiddenError(LastKeyError):
    """Raised when the acting participant lacks the required role."""
