"""
Database and application configuration.
Store sensitive config in environment variables.
"""

import os
from dotenv import load_dotenv

from access import check_permissions

load_dotenv()


def parse_permissions(value):
    """
    Parse a comma-separated permission list.
    Raises ValueError naming any unknown permission, so a typo stops startup.
    """
    permissions = [p.strip() for p in (value or '').split(',') if p.strip()]
    try:
        check_permissions(permissions)
    except ValueError as e:
        raise ValueError(f"ANONYMOUS_PERMISSIONS: {e}") from e
    return permissions


# MySQL Database Configuration
DB_CONFIG = {
    'host': os.getenv('DB_HOST', 'localhost'),
    'user': os.getenv('DB_USER'),
    'password': os.getenv('DB_PASSWORD'),
    'database': os.getenv('DB_NAME', 'file_entity'),
    'port': int(os.getenv('DB_PORT', 3306)),
    'autocommit': True,
}

# Application paths
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# One subdirectory per stream wrapper scheme (public/, private/)
STORAGE_DIR = os.getenv('STORAGE_DIR', os.path.join(BASE_DIR, 'files'))

# Flask configuration
SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

# Mixed into form tokens together with the secret key
HASH_SALT = os.getenv('HASH_SALT', '')

ANONYMOUS_PERMISSIONS = parse_permissions(os.getenv('ANONYMOUS_PERMISSIONS', 'view files'))

# Temporary files older than this (seconds) are purged
TEMPORARY_MAX_AGE = int(os.getenv('TEMPORARY_MAX_AGE', 6 * 60 * 60))

PURGE_INTERVAL_HOURS = int(os.getenv('PURGE_INTERVAL_HOURS', 1))
