"""
Filesystem adapter.
Maps scheme://target URIs onto one directory per scheme under STORAGE_DIR.
"""

import os
from pathlib import Path

from flask import current_app

SCHEMES = ('public', 'private')


def split_uri(uri):
    """Split 'scheme://target' into (scheme, target)."""
    scheme, sep, target = uri.partition('://')
    if not sep or not scheme:
        raise ValueError(f"File URI has no scheme: {uri!r}")
    return scheme, target


def build_uri(scheme, target):
    return f"{scheme}://{target.lstrip('/')}"


def basename(uri):
    """Last path component of a URI, multibyte-safe."""
    _, target = split_uri(uri)
    return target.rstrip('/').rsplit('/', 1)[-1]


class FileStorage:

    def __init__(self, base_dir):
        self.base_dir = os.path.abspath(base_dir)

    def ensure_dirs(self):
        """Ensure every scheme directory exists."""
        for scheme in SCHEMES:
            Path(self.scheme_dir(scheme)).mkdir(parents=True, exist_ok=True)

    def scheme_dir(self, scheme):
        if scheme not in SCHEMES:
            raise ValueError(f"Unknown file scheme: {scheme!r}")
        return os.path.join(self.base_dir, scheme)

    def realpath(self, uri):
        """
        Resolve URI to an absolute path.
        Raises ValueError if the target escapes its scheme directory.
        """
        scheme, target = split_uri(uri)
        root = self.scheme_dir(scheme)
        path = os.path.normpath(os.path.join(root, target))
        if os.path.commonpath([root, path]) != root or path == root:
            raise ValueError(f"Invalid file target: {uri!r}")
        return path

    def write(self, uri, contents):
        """Write contents (str or bytes) to URI. Returns size on disk."""
        path = self.realpath(uri)
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        with open(path, 'wb') as f:
            f.write(contents)
        return os.path.getsize(path)

    def read(self, uri):
        with open(self.realpath(uri), 'rb') as f:
            return f.read()

    def exists(self, uri):
        return os.path.isfile(self.realpath(uri))

    def filesize(self, uri):
        return os.path.getsize(self.realpath(uri))

    def delete(self, uri):
        """Remove the file behind URI. Returns False if it was already gone."""
        path = self.realpath(uri)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True


def get_storage():
    """File storage bound to the current app."""
    return current_app.extensions['file_storage']
