from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from models import ProgressRecord
from schemas.progress import ProgressEntry

logger = logging.getLogger("placement-grading.progress")


class SqlProgressSink:
    """Stores graded submissions in the progress_records table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def record(self, entry: ProgressEntry) -> int:
        with self._session_factory() as db:
            row = ProgressRecord(
                activity_type=entry.activity_type,
                language=entry.language,
                difficulty=entry.difficulty,
                score=entry.score,
                activity_data=entry.activity_data,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info("recorded %s progress #%s (score %s)", entry.activity_type, row.id, entry.score)
            return row.id
