"""Fleet-wide status recalculation."""

from datetime import datetime
from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from railqual import db
from railqual.models import Qualification
from railqual.utils.calculations import status_for
from railqual.utils.helpers import today
from railqual.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


class RecalculationService:

    @staticmethod
    def recalculate_all_statuses(now=None, chunk_size=None):
        """Refresh the cached status of every non-exempt qualification.

        All records are judged against the same ``now``. Records are scanned in
        id order, one transaction per chunk. Each write is guarded on the values
        that were read, so a record edited mid-scan is skipped rather than
        overwritten. Each write runs in its own savepoint, so a lock conflict
        skips that one record and the pass moves on.
        """
        now = now or today()
        chunk_size = chunk_size or current_app.config.get('RECALC_CHUNK_SIZE', 500)

        updated = 0
        skipped = 0
        last_id = 0

        while True:
            rows = db.session.query(
                Qualification.id,
                Qualification.status,
                Qualification.next_due_date
            ).filter(
                Qualification.is_exempt.is_(False),
                Qualification.id > last_id
            ).order_by(Qualification.id).limit(chunk_size).all()

            if not rows:
                break
            last_id = rows[-1].id

            chunk_updated = 0
            for row in rows:
                new_status = status_for(False, row.next_due_date, now)
                if new_status == row.status:
                    continue

                if row.next_due_date is None:
                    due_guard = Qualification.next_due_date.is_(None)
                else:
                    due_guard = Qualification.next_due_date == row.next_due_date

                try:
                    with db.session.begin_nested():
                        result = db.session.execute(
                            update(Qualification).where(
                                Qualification.id == row.id,
                                Qualification.status == row.status,
                                Qualification.is_exempt.is_(False),
                                due_guard
                            ).values(
                                status=new_status,
                                updated_at=datetime.utcnow()
                            ).execution_options(synchronize_session=False)
                        )
                except OperationalError as e:
                    skipped += 1
                    logger.warning(f"Status recalculation skipped qualification {row.id}: {e}")
                    continue

                if result.rowcount:
                    chunk_updated += 1
                else:
                    skipped += 1

            try:
                db.session.commit()
                updated += chunk_updated
            except OperationalError as e:
                db.session.rollback()
                skipped += chunk_updated
                logger.warning(f"Status recalculation lost chunk ending at id {last_id}: {e}")

        # Cached objects in the session may hold stale statuses
        db.session.expire_all()

        log_audit_event('status_recalculation', details={
            'as_of': now.isoformat(),
            'updated': updated,
            'skipped': skipped,
        })
        return {'updated': updated}
