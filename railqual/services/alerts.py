"""Alert tracking service for RailQual application."""

from datetime import datetime
from flask import current_app
from sqlalchemy import update

from railqual import db
from railqual.models import QualificationAlert


class AlertService:
    """Read and acknowledge qualification alerts."""

    @staticmethod
    def get_alerts(filters=None, limit=None, offset=0):
        """Filtered page of alerts plus the total matching count."""
        filters = filters or {}
        query = QualificationAlert.query

        if filters.get('alert_type'):
            query = query.filter(QualificationAlert.alert_type == filters['alert_type'])
        if filters.get('is_acknowledged') is not None:
            query = query.filter(QualificationAlert.is_acknowledged.is_(bool(filters['is_acknowledged'])))
        if filters.get('car_id'):
            query = query.filter(QualificationAlert.car_id == str(filters['car_id']))
        if filters.get('qualification_id'):
            query = query.filter(QualificationAlert.qualification_id == filters['qualification_id'])

        total = query.order_by(None).count()

        limit = limit or current_app.config.get('DEFAULT_PAGE_SIZE', 50)
        alerts = query.order_by(
            QualificationAlert.days_until_due.asc().nulls_last(),
            QualificationAlert.created_at.desc(),
            QualificationAlert.id.desc()
        ).offset(offset or 0).limit(limit).all()

        return {'alerts': alerts, 'total': total}

    @staticmethod
    def acknowledge_alert(alert_id, actor_id=None):
        """Acknowledge a pending alert.

        Returns False when the alert is unknown or was already acknowledged.
        """
        stmt = update(QualificationAlert).where(
            QualificationAlert.id == alert_id,
            QualificationAlert.is_acknowledged.is_(False)
        ).values(
            is_acknowledged=True,
            acknowledged_by=str(actor_id) if actor_id is not None else None,
            acknowledged_at=datetime.utcnow()
        ).execution_options(synchronize_session=False)

        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return (result.rowcount or 0) > 0
