"""
Identity utilities: who is calling, and does a user ID resolve.
Caller identity comes from the Cognito authorizer claims attached by API Gateway.
"""
from typing import NamedTuple, Optional

from .errors import AuthenticationError

ADMIN_GROUP = 'admin'


class Caller(NamedTuple):
    """Resolved caller of a request."""
    user_id: str
    is_admin: bool = False


def get_user_sub(event: dict) -> Optional[str]:
    """
    Extract user sub (unique ID) from Cognito authorizer claims.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        User sub string or None if not authenticated
    """
    try:
        return event['requestContext']['authorizer']['claims']['sub']
    except (KeyError, TypeError):
        return None


def get_user_name(event: dict) -> Optional[str]:
    """Extract display name from Cognito claims."""
    try:
        claims = event['requestContext']['authorizer']['claims']
        return claims.get('name') or claims.get('cognito:username')
    except (KeyError, TypeError, AttributeError):
        return None


def get_user_groups(event: dict) -> list:
    """Extract user groups from Cognito claims."""
    try:
        groups = event['requestContext']['authorizer']['claims'].get('cognito:groups', '')
        if isinstance(groups, str):
            return groups.split(',') if groups else []
        return groups or []
    except (KeyError, TypeError):
        return []


def is_admin(event: dict) -> bool:
    """Check if user belongs to admin group."""
    return ADMIN_GROUP in get_user_groups(event)


class IdentityProvider:
    """
    Answers "who is this caller" and "does this user exist".

    Token verification happens upstream in the API Gateway Cognito authorizer;
    this class only reads the verified claims. User existence is checked
    against the users table through the store.
    """

    def __init__(self, store):
        self.store = store

    def resolve_caller(self, event: dict) -> Caller:
        user_id = get_user_sub(event)
        if not user_id:
            raise AuthenticationError('Access denied')
        return Caller(user_id=user_id, is_admin=is_admin(event))

    def user_exists(self, user_id: str) -> bool:
        if not user_id:
            return False
        return self.store.get_user(user_id) is not None
