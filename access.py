"""
Private file download access decisions.

decide() is a pure function of (principal, file). Callers resolve both
before asking: a missing file or an unresolvable session is their error,
not ours.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

VIEW_FILES = 'view files'
VIEW_OWN_PRIVATE_FILES = 'view own private files'
BYPASS_FILE_ACCESS = 'bypass file access'
ADMINISTER_FILE_TYPES = 'administer file types'
ADMINISTER_FILES = 'administer files'

PERMISSIONS = frozenset({
    VIEW_FILES,
    VIEW_OWN_PRIVATE_FILES,
    BYPASS_FILE_ACCESS,
    ADMINISTER_FILE_TYPES,
    ADMINISTER_FILES,
})


def check_permissions(permissions):
    """Return permissions as a frozenset; ValueError on any unknown string."""
    permissions = frozenset(permissions)
    unknown = permissions - PERMISSIONS
    if unknown:
        raise ValueError(f"Unknown permission(s): {', '.join(sorted(unknown))}")
    return permissions


class Decision(Enum):
    ALLOW = 200
    DENY = 403

    @property
    def status_code(self):
        """HTTP status the caller should answer with."""
        return self.value

    @property
    def allowed(self):
        return self is Decision.ALLOW


@dataclass(frozen=True)
class Principal:
    """
    Identity making a request.
    user_id of None is the anonymous user.
    """

    user_id: Optional[int] = None
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, 'permissions', check_permissions(self.permissions))

    @classmethod
    def anonymous(cls, permissions=()):
        return cls(None, frozenset(permissions))

    @property
    def is_anonymous(self):
        return self.user_id is None

    def has_permission(self, permission):
        return permission in self.permissions

    def owns(self, file):
        return not self.is_anonymous and file.uid == self.user_id


def decide(principal, file):
    """
    Decide whether principal may download file.
    Rules are evaluated in order, first match wins.
    """
    if principal.has_permission(BYPASS_FILE_ACCESS):
        return Decision.ALLOW
    if not file.is_private:
        return Decision.ALLOW
    if principal.is_anonymous:
        return Decision.DENY
    if principal.owns(file):
        if principal.has_permission(VIEW_OWN_PRIVATE_FILES):
            return Decision.ALLOW
        return Decision.DENY
    # 'view files' only covers public files
    return Decision.DENY
