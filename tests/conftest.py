"""
Fixtures for file entity tests.
Run with: pytest -v
"""

import os
from collections import namedtuple

import pytest
from flask_login import FlaskLoginClient
from werkzeug.security import generate_password_hash

from app import app
from file_types import create_file_type as save_file_type, install_default_file_types
from files import create_file_entity as save_file_entity
from helpers import MemoryEntityStore, random_name
from models import FILE_STATUS_PERMANENT, User
from storage import FileStorage, build_uri

SampleFile = namedtuple('SampleFile', ['path', 'filename', 'filemime', 'filesize'])

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    '89504e470d0a1a0a0000000d4948445200000001000000010806000000'
    '1f15c4890000000d49444154789c6360000002000001e221bc330000000049454e44ae426082'
)

SAMPLE_FILES = {
    'text': [
        ('text-0.txt', 'text/plain', b''),
        ('text-1.txt', 'text/plain', b'The quick brown fox jumps over the lazy dog.\n' * 24),
        ('text-2.txt', 'text/plain', b'0123456789abcdef' * 256),
    ],
    'image': [
        ('image-1.png', 'image/png', PNG_BYTES),
        ('image-2.gif', 'image/gif', b'GIF89a\x01\x00\x01\x00\x80\x00\x00\xff\xff\xff\x00\x00\x00!'
                                     b'\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01'
                                     b'\x00\x00\x02\x02D\x01\x00;'),
    ],
}


@pytest.fixture
def store():
    """In-memory entity store with the default file types installed."""
    store = MemoryEntityStore()
    install_default_file_types(store)
    return store


@pytest.fixture
def storage(tmp_path):
    storage = FileStorage(tmp_path / 'files')
    storage.ensure_dirs()
    return storage


@pytest.fixture
def flask_app(monkeypatch, store, storage):
    """The app, wired to the in-memory store and temporary storage."""
    monkeypatch.setitem(app.extensions, 'entity_store', store)
    monkeypatch.setitem(app.extensions, 'file_storage', storage)
    monkeypatch.setitem(app.config, 'TESTING', True)
    monkeypatch.setitem(app.config, 'ANONYMOUS_PERMISSIONS', ['view files'])
    monkeypatch.setattr(app, 'test_client_class', FlaskLoginClient)
    return app


@pytest.fixture
def client(flask_app):
    """Flask test client, anonymous."""
    with flask_app.test_client() as client:
        yield client


@pytest.fixture
def create_user(store):
    """Factory: save a user with the given permissions."""
    def _create_user(permissions=(), username=None, password='secret'):
        username = username or random_name()
        user_id = store.create_user(
            username, f'{username}@example.com', generate_password_hash(password)
        )
        for permission in permissions:
            store.grant_permission(user_id, permission)
        return User.get(user_id, store)
    return _create_user


@pytest.fixture
def create_file_entity(store, storage):
    """
    Factory: write a file to disk and save its entity.
    Filenames are prefixed with non-latin characters so every test runs
    against international filenames.
    """
    def _create_file_entity(**settings):
        settings = {
            'filepath': 'Файл для тестирования ' + random_name(),
            'filemime': 'text/plain',
            'uid': 1,
            'timestamp': None,
            'status': FILE_STATUS_PERMANENT,
            'contents': "file_put_contents() doesn't seem to appreciate empty strings "
                        "so let's put in some data.",
            'scheme': 'public',
            'type': None,
            **settings,
        }
        uri = build_uri(settings['scheme'], settings['filepath'])
        file = save_file_entity(
            store, storage, uri, settings['contents'],
            uid=settings['uid'],
            filemime=settings['filemime'],
            status=settings['status'],
            type=settings['type'],
            timestamp=settings['timestamp'],
        )
        assert os.path.isfile(storage.realpath(uri)), 'The test file exists on the disk.'
        assert store.get_file_by_id(file.fid) == file, 'The file was added to the database.'
        return file
    return _create_file_entity


@pytest.fixture
def create_file_type(store):
    """Factory: save a file type with a random machine name."""
    def _create_file_type(**overrides):
        values = {
            'id': random_name().lower(),
            'label': 'Test',
            'mimetypes': ('image/jpeg', 'image/gif', 'image/png', 'image/tiff'),
            **overrides,
        }
        return save_file_type(store, **values)
    return _create_file_type


@pytest.fixture
def sample_files_dir(tmp_path):
    directory = tmp_path / 'samples'
    directory.mkdir()
    for samples in SAMPLE_FILES.values():
        for filename, _, contents in samples:
            (directory / filename).write_bytes(contents)
    return directory


@pytest.fixture
def get_test_files(sample_files_dir):
    """Factory: sample files of a type, optionally of an exact size."""
    def _get_test_files(type_name, size=None):
        files = []
        for filename, filemime, _ in SAMPLE_FILES[type_name]:
            path = sample_files_dir / filename
            filesize = path.stat().st_size
            if size is None or filesize == size:
                files.append(SampleFile(str(path), filename, filemime, filesize))
        return files
    return _get_test_files


@pytest.fixture
def get_test_file(get_test_files):
    """Factory: first sample file of a type, with its size as read from disk."""
    def _get_test_file(type_name, size=None):
        files = get_test_files(type_name, size)
        return files[0] if files else None
    return _get_test_file


@pytest.fixture
def set_up_files(store, storage, get_test_files):
    """
    Factory: save every sample text and image file as a file entity.
    Returns {type_name: [FileEntity, ...]}.
    """
    def _set_up_files(**defaults):
        defaults = {'uid': 1, 'status': FILE_STATUS_PERMANENT, 'scheme': 'public', **defaults}
        files = {}
        for type_name in ('text', 'image'):
            for sample in get_test_files(type_name):
                with open(sample.path, 'rb') as f:
                    contents = f.read()
                file = save_file_entity(
                    store, storage,
                    build_uri(defaults['scheme'], sample.filename),
                    contents,
                    uid=defaults['uid'],
                    filemime=sample.filemime,
                    status=defaults['status'],
                )
                files.setdefault(type_name, []).append(file)
        return files
    return _set_up_files
