"""Audit history service for RailQual application."""

from railqual import db, scheduler
from railqual.models import QualificationHistory
from railqual.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


class AuditService:
    """Append-only history of qualification lifecycle events."""

    @staticmethod
    def record_event(entity_id, action, actor_id=None, payload=None, entity_type='qualification'):
        """Add a history event to the current session.

        The caller owns the transaction, so the event commits or rolls back
        together with the data change it describes.
        """
        event = QualificationHistory(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=str(actor_id) if actor_id is not None else None,
            payload=payload or {}
        )
        db.session.add(event)
        return event

    @staticmethod
    def record_events_best_effort(entity_ids, action, actor_id=None, payload=None):
        """Write one event per id, committing each; failures are logged and skipped."""
        written = 0
        failed = 0

        for entity_id in entity_ids:
            try:
                AuditService.record_event(entity_id, action, actor_id, payload)
                db.session.commit()
                written += 1
            except Exception as e:
                db.session.rollback()
                failed += 1
                logger.error(f"Failed to write {action} history for qualification {entity_id}: {e}")

        if failed:
            log_audit_event(
                'history_write_failed',
                actor_id=actor_id,
                details={'action': action, 'failed': failed, 'written': written}
            )
        return written

    @staticmethod
    def dispatch_best_effort(entity_ids, action, actor_id=None, payload=None):
        """Hand the history fan-out to the background scheduler."""
        try:
            scheduler.submit(
                AuditService.record_events_best_effort,
                list(entity_ids), action, actor_id, payload
            )
        except Exception as e:
            logger.error(f"Failed to dispatch {action} history for {len(entity_ids)} record(s): {e}")

    @staticmethod
    def get_history(entity_id, entity_type='qualification'):
        """History events for an entity, newest first."""
        return QualificationHistory.query.filter_by(
            entity_type=entity_type,
            entity_id=entity_id
        ).order_by(
            QualificationHistory.created_at.desc(),
            QualificationHistory.id.desc()
        ).all()
