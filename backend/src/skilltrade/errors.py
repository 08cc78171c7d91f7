"""
Domain errors raised by the work-lifecycle services.
Each error carries the HTTP status code the handlers respond with.
"""
from typing import Optional


class SkillTradeError(Exception):
    """Base class for errors surfaced to the client."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SkillTradeError):
    """Malformed or out-of-range input."""
    status_code = 400


class AuthorizationError(SkillTradeError):
    """Caller lacks rights for the target entity."""
    status_code = 403


class NotFoundError(SkillTradeError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(SkillTradeError):
    """Uniqueness or state invariant violated."""
    status_code = 409


class InternalError(SkillTradeError):
    """Store or transport failure. `step` names the stage that failed, if any."""
    status_code = 500

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step


class AuthenticationError(SkillTradeError):
    """No resolvable caller identity on the request."""
    status_code = 401
