"""
File Entity - managed files with types, ownership and private downloads.
Flask application with auth, file access checks, and admin endpoints.
"""

import secrets
from flask import Flask, request, jsonify, send_file, abort, session, url_for, redirect
from flask_login import LoginManager, login_required, current_user

from config import STORAGE_DIR, SECRET_KEY, HASH_SALT, ANONYMOUS_PERMISSIONS
from access import ADMINISTER_FILES, PERMISSIONS, decide
from db import EntityStore, get_store
from files import delete_file_entity
from models import AnonymousUser, User
from storage import FileStorage, get_storage
from tokens import get_token, valid_token
from auth import auth_bp, current_principal
from admin import admin_bp

app = Flask(__name__)
app.config['SECRET_KEY'] = SECRET_KEY or 'dev-secret-key-change-in-production'
app.config['HASH_SALT'] = HASH_SALT
app.config['ANONYMOUS_PERMISSIONS'] = ANONYMOUS_PERMISSIONS

app.extensions['entity_store'] = EntityStore()
app.extensions['file_storage'] = FileStorage(STORAGE_DIR)

# Flask-Login
login_manager = LoginManager()
login_manager.init_app(app)
login_manager.anonymous_user = AnonymousUser


@login_manager.user_loader
def load_user(user_id):
    return User.get(user_id, get_store())


# Register blueprints
app.register_blueprint(auth_bp)
app.register_blueprint(admin_bp)


def get_form_token(value):
    """Token for value, bound to the current session."""
    seed = session.get('token_seed')
    if not seed:
        seed = secrets.token_urlsafe(32)
        session['token_seed'] = seed
    return get_token(value, seed, app.config['SECRET_KEY'], app.config['HASH_SALT'])


def check_form_token(token, value):
    return valid_token(
        token, value, session.get('token_seed'),
        app.config['SECRET_KEY'], app.config['HASH_SALT']
    )


@app.before_request
def setup():
    get_storage().ensure_dirs()


@app.errorhandler(403)
def forbidden(e):
    return jsonify({'error': 'Forbidden'}), 403


@app.errorhandler(404)
def not_found(e):
    return jsonify({'error': 'Not Found'}), 404


@app.route('/')
@login_required
def index():
    return redirect(url_for('list_files'))


@app.route('/files')
@login_required
def list_files():
    """List files owned by the current user, with delete links."""
    files = get_store().get_files_by_user(current_user.id)
    listing = []
    for file in files:
        data = file.to_dict()
        data['download_url'] = url_for('download_file', fid=file.fid)
        data['delete_url'] = url_for(
            'delete_file', fid=file.fid, token=get_form_token(f'file/{file.fid}/delete')
        )
        listing.append(data)
    return jsonify(listing)


@app.route('/file/<int:fid>/download')
def download_file(fid):
    """
    Download a file.
    Public files are open to everyone; private files go through decide().
    All attempts on existing files (allowed + denied) are logged for audit.
    """
    store = get_store()
    file = store.get_file_by_id(fid)
    if file is None:
        abort(404)

    principal = current_principal()
    decision = decide(principal, file)
    store.log_access(
        principal.user_id, fid, 'DOWNLOAD_ATTEMPT',
        'ALLOWED' if decision.allowed else 'DENIED'
    )
    if not decision.allowed:
        app.logger.info("Denied download of file %s to user %s", fid, principal.user_id)
        abort(decision.status_code)

    storage = get_storage()
    if not storage.exists(file.uri):
        app.logger.warning("File %s is missing from storage: %s", fid, file.uri)
        abort(404)

    return send_file(
        storage.realpath(file.uri),
        mimetype=file.filemime,
        as_attachment=True,
        download_name=file.filename,
    )


@app.route('/file/<int:fid>/delete', methods=['POST'])
@login_required
def delete_file(fid):
    """Delete a file. Requires a session token; owner or 'administer files' only."""
    store = get_store()
    file = store.get_file_by_id(fid)
    if file is None:
        abort(404)

    token = request.args.get('token') or request.form.get('token')
    if not check_form_token(token, f'file/{fid}/delete'):
        abort(403)

    if file.uid != current_user.id and not current_user.has_permission(ADMINISTER_FILES):
        store.log_access(current_user.id, fid, 'DELETE', 'DENIED')
        abort(403)

    delete_file_entity(store, get_storage(), file)
    store.log_access(current_user.id, fid, 'DELETE', 'ALLOWED')
    app.logger.info("User %s deleted file %s (%s)", current_user.id, fid, file.uri)
    return jsonify({'deleted': fid})


def main():
    """Initialize and run Flask app."""
    store = app.extensions['entity_store']
    store.init_database()
    app.extensions['file_storage'].ensure_dirs()

    from file_types import install_default_file_types
    installed = install_default_file_types(store)
    if installed:
        print(f"Installed default file types: {', '.join(installed)}")

    # Create default admin if no users exist
    if not store.get_user_by_username('admin'):
        from werkzeug.security import generate_password_hash
        admin_id = store.create_user(
            'admin', 'admin@file-entity.local',
            generate_password_hash('admin123', method='scrypt')
        )
        for permission in sorted(PERMISSIONS):
            store.grant_permission(admin_id, permission)
        print("Default admin created: username=admin, password=admin123")

    # Start scheduler for temporary file purge
    from scheduler import start_scheduler
    start_scheduler(app)

    print("File Entity running at http://127.0.0.1:5000")
    app.run(debug=True, host='0.0.0.0', port=5000)


if __name__ == '__main__':
    main()
