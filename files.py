"""
File entity operations over the entity store and file storage.
"""

import time
from dataclasses import replace

from file_types import resolve_file_type
from models import FILE_STATUS_PERMANENT, FILE_TYPE_NONE, FileEntity
from storage import basename


def create_file_entity(store, storage, uri, contents, uid=1, filemime='text/plain',
                       status=FILE_STATUS_PERMANENT, type=None, timestamp=None):
    """
    Write contents to uri and save a file entity for it.
    Size is read back from disk; when no type is given it is resolved
    from the MIME type. Returns the saved entity, fid included.

    Raises ValueError for invalid entity values and FileExistsError when
    uri is already taken. Nothing is left on disk when saving fails.
    """
    if isinstance(contents, str):
        contents = contents.encode('utf-8')

    # The file type is used as a bundle key, and therefore, must not be empty.
    if not type:
        type = FILE_TYPE_NONE
    if type == FILE_TYPE_NONE:
        type = resolve_file_type(filemime, store.get_file_types())

    file = FileEntity(
        uri=uri,
        filename=basename(uri),
        filemime=filemime,
        filesize=len(contents),
        uid=uid,
        status=status,
        type=type,
        timestamp=int(time.time()) if timestamp is None else timestamp,
    )
    if storage.exists(uri):
        raise FileExistsError(f"File already exists: {uri}")

    file = replace(file, filesize=storage.write(uri, contents))
    try:
        fid = store.insert_file(file)
    except Exception:
        storage.delete(uri)
        raise
    return replace(file, fid=fid)


def get_file_by_filename(store, filename):
    """First file entity saved under filename, or None."""
    files = store.get_files_by_filename(filename)
    return files[0] if files else None


def delete_file_entity(store, storage, file):
    """Remove the file's bytes (if still there) and its entity."""
    storage.delete(file.uri)
    store.delete_file(file.fid)
