"""
File types: bundles of file entities, matched by MIME type.
"""

from models import FILE_TYPE_NONE, FileType

DEFAULT_FILE_TYPES = (
    FileType(
        id='image',
        label='Image',
        mimetypes=('image/*',),
        description='An image file is a file containing a picture.',
    ),
    FileType(
        id='video',
        label='Video',
        mimetypes=('video/*',),
        description='A video file is a file containing moving pictures.',
    ),
    FileType(
        id='audio',
        label='Audio',
        mimetypes=('audio/*',),
        description='An audio file is a file containing sound.',
    ),
    FileType(
        id='document',
        label='Document',
        mimetypes=(
            'text/plain',
            'application/msword',
            'application/vnd.ms-excel',
            'application/pdf',
            'application/vnd.ms-powerpoint',
            'application/vnd.oasis.opendocument.text',
            'application/vnd.oasis.opendocument.spreadsheet',
            'application/vnd.oasis.opendocument.presentation',
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            'application/vnd.openxmlformats-officedocument.presentationml.presentation',
            'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        ),
        description='A document file is written information.',
    ),
)


def resolve_file_type(mimetype, file_types):
    """Id of the first type whose patterns match mimetype, else FILE_TYPE_NONE."""
    for file_type in file_types:
        if file_type.matches(mimetype):
            return file_type.id
    return FILE_TYPE_NONE


def create_file_type(store, id, label, mimetypes=(), description=''):
    """
    Validate and save a new file type.
    Raises ValueError on invalid values or a duplicate machine name.
    """
    file_type = FileType(id=id, label=label, mimetypes=tuple(mimetypes), description=description)
    if store.get_file_type(file_type.id) is not None:
        raise ValueError(f"File type '{file_type.id}' already exists")
    return store.insert_file_type(file_type)


def install_default_file_types(store):
    """Save any default type not yet present. Returns the ids installed."""
    installed = []
    for file_type in DEFAULT_FILE_TYPES:
        if store.get_file_type(file_type.id) is None:
            store.insert_file_type(file_type)
            installed.append(file_type.id)
    return installed
