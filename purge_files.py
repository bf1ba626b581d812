"""
Temporary file garbage collection.
Deletes temporary (status 0) file entities older than TEMPORARY_MAX_AGE,
bytes included. Run from the scheduler or standalone from cron.
"""

import sys
import time

from config import STORAGE_DIR, TEMPORARY_MAX_AGE
from db import EntityStore
from files import delete_file_entity
from storage import FileStorage


def purge_temporary_files(store, storage, max_age=TEMPORARY_MAX_AGE, now=None):
    """Returns the number of file entities deleted."""
    if now is None:
        now = int(time.time())
    count = 0
    for file in store.get_temporary_files(older_than=now - max_age):
        delete_file_entity(store, storage, file)
        count += 1
    return count


def main():
    """Standalone execution for cron/scheduled jobs."""
    try:
        count = purge_temporary_files(EntityStore(), FileStorage(STORAGE_DIR))
        print(f"Purged {count} temporary file(s).")
    except Exception as e:
        print(f"Temporary file purge failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
