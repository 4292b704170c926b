"""
Archive of deleted passport data.

Before a passport entry or a whole post is removed its content is
appended to a daily JSON file under ``settings.deleted_log_dir``
(``deleted_passports_YYYY-MM-DD.json``).  Each record is written as an
indented JSON object followed by a newline.  Archiving is best effort:
a failure is logged and never prevents the deletion.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

from passport_posts_api.app.core.db import get_deleted_log_dir


logger = logging.getLogger(__name__)


class ArchiveService:

    @classmethod
    def archive_path(cls, when: Optional[datetime] = None) -> str:
        when = when or datetime.now(timezone.utc)
        return os.path.join(get_deleted_log_dir(), f"deleted_passports_{when.date().isoformat()}.json")

    @classmethod
    def record_deleted(cls, passport_data: Any, deleted_by: Optional[int]) -> None:
        """Append one deletion record; errors are logged and swallowed."""
        now = datetime.now(timezone.utc)
        entry = {
            "deletedAt": now.isoformat(),
            "deletedBy": deleted_by,
            "passportData": passport_data,
        }
        try:
            path = cls.archive_path(now)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, indent=2, default=str) + "\n")
        except Exception:
            logger.exception("Error logging deleted passport")
            return
        logger.info("Deleted passport logged to: %s", path)
