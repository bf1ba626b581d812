"""
Entity store: users, permissions, file entities, file types, access logs.
Uses mysql-connector-python with parameterized queries to prevent SQL injection.
"""

from contextlib import contextmanager

import mysql.connector
from flask import current_app
from mysql.connector import Error

from access import check_permissions
from config import DB_CONFIG
from models import FileEntity, FileType

FILE_COLUMNS = "fid, uri, filename, filemime, filesize, uid, status, type, timestamp"


class StoreError(Exception):
    """Raised when the database cannot be reached or a query fails."""


def _file_from_row(row):
    if not row:
        return None
    return FileEntity(
        fid=row['fid'],
        uri=row['uri'],
        filename=row['filename'],
        filemime=row['filemime'],
        filesize=row['filesize'],
        uid=row['uid'],
        status=row['status'],
        type=row['type'],
        timestamp=row['timestamp'],
    )


def _file_type_from_row(row):
    if not row:
        return None
    return FileType(
        id=row['id'],
        label=row['label'],
        mimetypes=tuple((row['mimetypes'] or '').splitlines()),
        description=row['description'] or '',
    )


class EntityStore:

    def __init__(self, config=None):
        self.config = dict(config or DB_CONFIG)

    @contextmanager
    def connection(self):
        """
        Context manager for database connections.
        Ensures proper connection cleanup.
        """
        conn = None
        try:
            conn = mysql.connector.connect(**self.config)
            yield conn
        except Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            if conn and conn.is_connected():
                conn.close()

    def _fetchone(self, query, params=()):
        with self.connection() as conn:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(query, params)
            row = cursor.fetchone()
            cursor.close()
            return row

    def _fetchall(self, query, params=()):
        with self.connection() as conn:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(query, params)
            rows = cursor.fetchall()
            cursor.close()
            return rows

    def _execute(self, query, params=()):
        """Run a write query. Returns lastrowid."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            last_id = cursor.lastrowid
            cursor.close()
            return last_id

    def init_database(self):
        """
        Create database and tables if they don't exist.
        """
        config_no_db = {k: v for k, v in self.config.items() if k != 'database'}

        try:
            conn = mysql.connector.connect(**config_no_db)
            cursor = conn.cursor()
            cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{self.config['database']}`")
            conn.commit()
            cursor.close()
            conn.close()
        except Error as e:
            raise StoreError(f"Failed to create database: {e}") from e

        with self.connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    username VARCHAR(100) UNIQUE NOT NULL,
                    email VARCHAR(150) UNIQUE NOT NULL,
                    password_hash VARCHAR(255) NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_permissions (
                    user_id INT NOT NULL,
                    permission VARCHAR(128) NOT NULL,
                    PRIMARY KEY (user_id, permission),
                    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS file_types (
                    id VARCHAR(32) PRIMARY KEY,
                    label VARCHAR(255) NOT NULL,
                    mimetypes TEXT,
                    description TEXT
                )
            """)

            # uid 0 is the anonymous owner, so no foreign key on users
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS file_managed (
                    fid INT AUTO_INCREMENT PRIMARY KEY,
                    uri VARCHAR(255) UNIQUE NOT NULL,
                    filename VARCHAR(255) NOT NULL,
                    filemime VARCHAR(255) NOT NULL,
                    filesize BIGINT UNSIGNED NOT NULL DEFAULT 0,
                    uid INT UNSIGNED NOT NULL DEFAULT 0,
                    status TINYINT NOT NULL DEFAULT 0,
                    type VARCHAR(50) NOT NULL,
                    timestamp INT UNSIGNED NOT NULL DEFAULT 0,
                    INDEX file_uid (uid),
                    INDEX file_status (status),
                    INDEX file_type (type)
                ) DEFAULT CHARSET=utf8mb4
            """)

            # Log ALL download attempts (allowed + denied)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS access_logs (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    user_id INT NULL,
                    file_id INT NULL,
                    action VARCHAR(50) NOT NULL,
                    status VARCHAR(20) NOT NULL,
                    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.commit()
            cursor.close()

    # --- User operations ---

    def _with_permissions(self, row):
        if not row:
            return None
        row['permissions'] = self.get_user_permissions(row['id'])
        return row

    def get_user_by_id(self, user_id):
        """Fetch user by ID, with granted permissions. Returns dict or None."""
        row = self._fetchone(
            "SELECT id, username, email, password_hash FROM users WHERE id = %s",
            (user_id,)
        )
        return self._with_permissions(row)

    def get_user_by_username(self, username):
        """Fetch user by username, with granted permissions. Returns dict or None."""
        row = self._fetchone(
            "SELECT id, username, email, password_hash FROM users WHERE username = %s",
            (username,)
        )
        return self._with_permissions(row)

    def create_user(self, username, email, password_hash):
        """Create new user. Returns user ID."""
        return self._execute(
            "INSERT INTO users (username, email, password_hash) VALUES (%s, %s, %s)",
            (username, email, password_hash)
        )

    def get_user_permissions(self, user_id):
        rows = self._fetchall(
            "SELECT permission FROM user_permissions WHERE user_id = %s",
            (user_id,)
        )
        return frozenset(row['permission'] for row in rows)

    def grant_permission(self, user_id, permission):
        """Grant one permission. Raises ValueError for unknown permissions."""
        check_permissions([permission])
        self._execute(
            "INSERT IGNORE INTO user_permissions (user_id, permission) VALUES (%s, %s)",
            (user_id, permission)
        )

    # --- File operations ---

    def insert_file(self, file):
        """Insert a file entity. Returns file ID."""
        return self._execute(
            """
            INSERT INTO file_managed (uri, filename, filemime, filesize, uid, status, type, timestamp)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (file.uri, file.filename, file.filemime, file.filesize,
             file.uid, file.status, file.type, file.timestamp)
        )

    def get_file_by_id(self, fid):
        """Fetch file entity by ID. Returns FileEntity or None."""
        row = self._fetchone(
            f"SELECT {FILE_COLUMNS} FROM file_managed WHERE fid = %s",
            (fid,)
        )
        return _file_from_row(row)

    def get_files_by_filename(self, filename):
        rows = self._fetchall(
            f"SELECT {FILE_COLUMNS} FROM file_managed WHERE filename = %s ORDER BY fid",
            (filename,)
        )
        return [_file_from_row(row) for row in rows]

    def get_files_by_user(self, user_id):
        rows = self._fetchall(
            f"SELECT {FILE_COLUMNS} FROM file_managed WHERE uid = %s ORDER BY timestamp DESC, fid DESC",
            (user_id,)
        )
        return [_file_from_row(row) for row in rows]

    def get_temporary_files(self, older_than):
        """Temporary files with a timestamp before older_than (unix time)."""
        rows = self._fetchall(
            f"SELECT {FILE_COLUMNS} FROM file_managed WHERE status = 0 AND timestamp < %s ORDER BY fid",
            (older_than,)
        )
        return [_file_from_row(row) for row in rows]

    def delete_file(self, fid):
        self._execute("DELETE FROM file_managed WHERE fid = %s", (fid,))

    # --- File type operations ---

    def insert_file_type(self, file_type):
        self._execute(
            "INSERT INTO file_types (id, label, mimetypes, description) VALUES (%s, %s, %s, %s)",
            (file_type.id, file_type.label, '\n'.join(file_type.mimetypes), file_type.description)
        )
        return file_type

    def get_file_type(self, type_id):
        row = self._fetchone(
            "SELECT id, label, mimetypes, description FROM file_types WHERE id = %s",
            (type_id,)
        )
        return _file_type_from_row(row)

    def get_file_types(self):
        rows = self._fetchall(
            "SELECT id, label, mimetypes, description FROM file_types ORDER BY id"
        )
        return [_file_type_from_row(row) for row in rows]

    # --- Access logging (audit trail) ---

    def log_access(self, user_id, file_id, action, status):
        """
        Log access attempt for audit trail.
        status: 'ALLOWED' | 'DENIED'
        action: 'DOWNLOAD_ATTEMPT' | 'DELETE'
        """
        self._execute(
            "INSERT INTO access_logs (user_id, file_id, action, status) VALUES (%s, %s, %s, %s)",
            (user_id, file_id, action, status)
        )

    def get_access_logs(self, limit=100):
        """Fetch recent access logs, newest first."""
        return self._fetchall(
            """
            SELECT al.id, al.user_id, al.file_id, al.action, al.status, al.timestamp,
                   u.username, f.filename
            FROM access_logs al
            LEFT JOIN users u ON al.user_id = u.id
            LEFT JOIN file_managed f ON al.file_id = f.fid
            ORDER BY al.timestamp DESC, al.id DESC LIMIT %s
            """,
            (limit,)
        )


def get_store():
    """Entity store bound to the current app."""
    return current_app.extensions['entity_store']
