"""
Entity models.
User objects for Flask-Login plus immutable file and file type records.
"""

import re
from dataclasses import asdict, dataclass, field
from fnmatch import fnmatchcase
from typing import Optional, Tuple

from flask import current_app
from flask_login import AnonymousUserMixin, UserMixin

from access import PERMISSIONS, Principal
from storage import SCHEMES

FILE_STATUS_TEMPORARY = 0
FILE_STATUS_PERMANENT = 1

# Bundle key for files no type could be resolved for
FILE_TYPE_NONE = 'undefined'

PRIVATE_SCHEME = 'private'

_MACHINE_NAME = re.compile(r'^[a-z0-9_]+$')


class User(UserMixin):
    """
    User model compatible with Flask-Login.
    Carries the permissions granted to the account.
    """

    def __init__(self, user_id, username, email, permissions=()):
        self.id = user_id
        self.username = username
        self.email = email
        self.permissions = frozenset(permissions)

    def has_permission(self, permission):
        return permission in self.permissions

    def to_principal(self):
        # Stale grants no longer in the vocabulary carry no rights
        return Principal(self.id, self.permissions & PERMISSIONS)

    @staticmethod
    def get(user_id, store):
        """
        Load user from the entity store by ID.
        Returns User instance or None.
        """
        if user_id is None:
            return None
        row = store.get_user_by_id(int(user_id))
        if not row:
            return None
        return User(
            user_id=row['id'],
            username=row['username'],
            email=row['email'],
            permissions=row['permissions'],
        )


class AnonymousUser(AnonymousUserMixin):
    """Anonymous visitor; permissions come from ANONYMOUS_PERMISSIONS."""

    @property
    def permissions(self):
        return frozenset(current_app.config.get('ANONYMOUS_PERMISSIONS', ()))

    def has_permission(self, permission):
        return permission in self.permissions

    def to_principal(self):
        return Principal.anonymous(self.permissions & PERMISSIONS)


@dataclass(frozen=True)
class FileEntity:
    uri: str
    filename: str
    filemime: str
    filesize: int
    uid: int
    status: int = FILE_STATUS_PERMANENT
    type: str = FILE_TYPE_NONE
    timestamp: int = 0
    fid: Optional[int] = None

    def __post_init__(self):
        if '://' not in self.uri:
            raise ValueError(f"File URI has no scheme: {self.uri!r}")
        if self.scheme not in SCHEMES:
            raise ValueError(f"Unknown file scheme: {self.scheme!r}")
        if self.status not in (FILE_STATUS_TEMPORARY, FILE_STATUS_PERMANENT):
            raise ValueError(f"Invalid file status: {self.status!r}")
        if self.filesize < 0:
            raise ValueError("File size cannot be negative")
        if self.uid < 0:
            raise ValueError("Owner id cannot be negative")
        if not self.type:
            raise ValueError("File type must not be empty")

    @property
    def scheme(self):
        return self.uri.split('://', 1)[0]

    @property
    def is_private(self):
        return self.scheme == PRIVATE_SCHEME

    @property
    def visibility(self):
        return 'private' if self.is_private else 'public'

    @property
    def is_permanent(self):
        return self.status == FILE_STATUS_PERMANENT

    def to_dict(self):
        data = asdict(self)
        data['visibility'] = self.visibility
        return data


@dataclass(frozen=True)
class FileType:
    """Bundle of files, matched by MIME type patterns such as 'image/*'."""

    id: str
    label: str
    mimetypes: Tuple[str, ...] = field(default_factory=tuple)
    description: str = ''

    def __post_init__(self):
        if not _MACHINE_NAME.match(self.id or ''):
            raise ValueError(f"Invalid file type machine name: {self.id!r}")
        if self.id == FILE_TYPE_NONE:
            raise ValueError(f"'{FILE_TYPE_NONE}' is reserved")
        if not self.label:
            raise ValueError("File type label is required")
        mimetypes = tuple(m.strip().lower() for m in self.mimetypes if m.strip())
        for mimetype in mimetypes:
            if '/' not in mimetype:
                raise ValueError(f"Invalid MIME type pattern: {mimetype!r}")
        object.__setattr__(self, 'mimetypes', mimetypes)

    def matches(self, mimetype):
        mimetype = (mimetype or '').lower()
        return any(fnmatchcase(mimetype, pattern) for pattern in self.mimetypes)

    def to_dict(self):
        data = asdict(self)
        data['mimetypes'] = list(self.mimetypes)
        return data
