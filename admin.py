"""
Admin module - file types and access logs.
"""

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required

from access import ADMINISTER_FILE_TYPES, ADMINISTER_FILES
from auth import permission_required
from db import get_store
from file_types import create_file_type

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/file-types', methods=['GET'])
@login_required
@permission_required(ADMINISTER_FILE_TYPES)
def list_file_types():
    file_types = get_store().get_file_types()
    return jsonify([file_type.to_dict() for file_type in file_types])


@admin_bp.route('/file-types', methods=['POST'])
@login_required
@permission_required(ADMINISTER_FILE_TYPES)
def add_file_type():
    """
    Create a file type.
    Form fields: id, label, description, mimetypes (one pattern per line).
    """
    mimetypes = request.form.get('mimetypes', '').splitlines()
    try:
        file_type = create_file_type(
            get_store(),
            id=request.form.get('id', '').strip().lower(),
            label=request.form.get('label', '').strip(),
            mimetypes=mimetypes,
            description=request.form.get('description', '').strip(),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    current_app.logger.info("Created file type '%s'", file_type.id)
    return jsonify(file_type.to_dict()), 201


@admin_bp.route('/access-logs')
@login_required
@permission_required(ADMINISTER_FILES)
def access_logs():
    limit = request.args.get('limit', 100, type=int)
    if limit < 1 or limit > 1000:
        return jsonify({'error': 'Invalid limit. Use 1-1000.'}), 400
    logs = get_store().get_access_logs(limit=limit)
    return jsonify(logs)
