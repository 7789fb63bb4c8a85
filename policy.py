"""
Authorization policy.

All role decisions live here. Routes call ``require`` (or ``authorize``)
with the current user, an action and a resource; the returned Decision says
whether the call may proceed and whether reads are limited to the user's own
rows.
"""

from collections import namedtuple

from errors import AuthorizationError
from models import UserRole

SCOPE_ALL = 'all'
SCOPE_OWN = 'own'

Decision = namedtuple('Decision', ['allowed', 'scope', 'reason'])

# (resource, action) pairs only admins may perform
ADMIN_ONLY = {
    ('consultant', 'create'): 'Only admins can create consultants',
    ('consultant', 'delete'): 'Only admins can delete consultants',
    ('vendor', 'delete'): 'Only admins can delete vendors',
    ('user', 'list'): 'Only admins can view users',
    ('user', 'create'): 'Only admins can create users',
    ('user', 'update'): 'Only admins can update users',
    ('user', 'delete'): 'Only admins can delete users',
    ('report', 'send'): 'Only admins can send reports',
    ('report', 'preview'): 'Only admins can preview reports',
}

RESOURCES = {'consultant', 'vendor', 'submission', 'interview', 'stats', 'analytics', 'user', 'report'}
ACTIONS = {'list', 'view', 'create', 'update', 'delete', 'send', 'preview'}


def authorize(user, action, resource):
    if user is None or not getattr(user, 'is_authenticated', False):
        return Decision(False, None, 'Authentication required')

    if resource not in RESOURCES or action not in ACTIONS:
        return Decision(False, None, f'Unknown permission {resource}:{action}')

    if user.role == UserRole.ADMIN:
        return Decision(True, SCOPE_ALL, None)

    if user.role == UserRole.RECRUITER:
        denial = ADMIN_ONLY.get((resource, action))
        if denial:
            return Decision(False, None, denial)
        return Decision(True, SCOPE_OWN, None)

    return Decision(False, None, 'Unknown role')


def require(user, action, resource):
    """Like ``authorize`` but raises AuthorizationError on deny."""
    decision = authorize(user, action, resource)
    if not decision.allowed:
        raise AuthorizationError(decision.reason)
    return decision


def owner_id(user, decision):
    """User id that scoped queries filter on, or None for unrestricted."""
    return user.id if decision.scope == SCOPE_OWN else None
