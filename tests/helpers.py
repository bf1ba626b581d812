"""
Shared test helpers: an in-memory entity store and the private download cases.
"""

import itertools
import uuid
from dataclasses import replace

from access import BYPASS_FILE_ACCESS, VIEW_FILES, VIEW_OWN_PRIVATE_FILES, check_permissions
from db import StoreError

# Each case:
#   message      assertion message
#   permissions  granted permissions, or None for the anonymous user
#   expect       expected HTTP response code
#   owner        (optional) whether the requesting user owns the file
PRIVATE_DOWNLOAD_ACCESS_CASES = [
    {
        'message': "File owners cannot download their own files unless they are "
                   "granted the 'view own private files' permission.",
        'permissions': [],
        'expect': 403,
        'owner': True,
    },
    {
        'message': "File owners can download their own files as they have been "
                   "granted the 'view own private files' permission.",
        'permissions': [VIEW_OWN_PRIVATE_FILES],
        'expect': 200,
        'owner': True,
    },
    {
        'message': "Anonymous users cannot download private files.",
        'permissions': None,
        'expect': 403,
    },
    {
        'message': "Authenticated users cannot download each other's private files.",
        'permissions': [],
        'expect': 403,
    },
    {
        'message': "Users who can view public files are not able to download private files.",
        'permissions': [VIEW_FILES],
        'expect': 403,
    },
    {
        'message': "Users who bypass file access can download any file.",
        'permissions': [BYPASS_FILE_ACCESS],
        'expect': 200,
    },
]


def case_id(case):
    if case['permissions'] is None:
        who = 'anonymous'
    else:
        who = '+'.join(case['permissions']).replace(' ', '_') or 'no_permissions'
    return f"{who}-{'owner' if case.get('owner') else 'other'}-{case['expect']}"


def random_name(length=8):
    return uuid.uuid4().hex[:length]


class MemoryEntityStore:
    """Dict-backed stand-in for db.EntityStore."""

    def __init__(self):
        self.users = {}
        self.permissions = {}
        self.files = {}
        self.file_types = {}
        self.access_logs = []
        self._user_ids = itertools.count(1)
        self._file_ids = itertools.count(1)
        self._log_ids = itertools.count(1)

    def init_database(self):
        pass

    def _with_permissions(self, row):
        if row is None:
            return None
        return dict(row, permissions=self.get_user_permissions(row['id']))

    def get_user_by_id(self, user_id):
        return self._with_permissions(self.users.get(user_id))

    def get_user_by_username(self, username):
        for row in self.users.values():
            if row['username'] == username:
                return self._with_permissions(row)
        return None

    def create_user(self, username, email, password_hash):
        user_id = next(self._user_ids)
        self.users[user_id] = {
            'id': user_id,
            'username': username,
            'email': email,
            'password_hash': password_hash,
        }
        return user_id

    def get_user_permissions(self, user_id):
        return frozenset(self.permissions.get(user_id, ()))

    def grant_permission(self, user_id, permission):
        check_permissions([permission])
        self.permissions.setdefault(user_id, set()).add(permission)

    def insert_file(self, file):
        # file_managed.uri is UNIQUE
        if any(f.uri == file.uri for f in self.files.values()):
            raise StoreError(f"Database error: Duplicate entry '{file.uri}' for key 'uri'")
        fid = next(self._file_ids)
        self.files[fid] = file
        return fid

    def get_file_by_id(self, fid):
        file = self.files.get(fid)
        if file is None:
            return None
        return _with_fid(file, fid)

    def get_files_by_filename(self, filename):
        return [_with_fid(f, fid) for fid, f in sorted(self.files.items()) if f.filename == filename]

    def get_files_by_user(self, user_id):
        return [_with_fid(f, fid) for fid, f in sorted(self.files.items(), reverse=True) if f.uid == user_id]

    def get_temporary_files(self, older_than):
        return [
            _with_fid(f, fid) for fid, f in sorted(self.files.items())
            if f.status == 0 and f.timestamp < older_than
        ]

    def delete_file(self, fid):
        self.files.pop(fid, None)

    def insert_file_type(self, file_type):
        self.file_types[file_type.id] = file_type
        return file_type

    def get_file_type(self, type_id):
        return self.file_types.get(type_id)

    def get_file_types(self):
        return [self.file_types[k] for k in sorted(self.file_types)]

    def log_access(self, user_id, file_id, action, status):
        self.access_logs.append({
            'id': next(self._log_ids),
            'user_id': user_id,
            'file_id': file_id,
            'action': action,
            'status': status,
        })

    def get_access_logs(self, limit=100):
        return list(reversed(self.access_logs))[:limit]


def _with_fid(file, fid):
    return replace(file, fid=fid)
