"""Fleet-level qualification rollups for dashboards."""

from collections import OrderedDict
from dateutil.relativedelta import relativedelta
from sqlalchemy import distinct, func, select

from railqual import db
from railqual.models import Qualification, QualificationAlert, QualificationType
from railqual.utils.helpers import today

STATS_FIELDS = (
    'total_cars',
    'overdue_count',
    'due_count',
    'due_soon_count',
    'current_count',
    'exempt_count',
    'unknown_count',
    'overdue_cars',
    'due_cars',
    'unacked_alerts',
)


def _count_status(status):
    return select(func.count(Qualification.id)).where(
        Qualification.status == status
    ).scalar_subquery()


def _count_cars(*statuses):
    return select(func.count(distinct(Qualification.car_id))).where(
        Qualification.status.in_(statuses)
    ).scalar_subquery()


class FleetStatsService:

    @staticmethod
    def get_qualification_stats():
        """Dashboard snapshot; every field is 0 when there is nothing to count."""
        stmt = select(
            select(func.count(distinct(Qualification.car_id))).scalar_subquery().label('total_cars'),
            _count_status('overdue').label('overdue_count'),
            _count_status('due').label('due_count'),
            _count_status('due_soon').label('due_soon_count'),
            _count_status('current').label('current_count'),
            _count_status('exempt').label('exempt_count'),
            _count_status('unknown').label('unknown_count'),
            _count_cars('overdue').label('overdue_cars'),
            _count_cars('due', 'due_soon').label('due_cars'),
            select(func.count(QualificationAlert.id)).where(
                QualificationAlert.is_acknowledged.is_(False)
            ).scalar_subquery().label('unacked_alerts'),
        )
        row = db.session.execute(stmt).mappings().first()

        if row is None:
            return {field: 0 for field in STATS_FIELDS}
        return {field: int(row[field] or 0) for field in STATS_FIELDS}

    @staticmethod
    def get_due_by_month(now=None, months=12):
        """Non-exempt qualifications falling due in the coming months, by YYYY-MM."""
        now = now or today()
        horizon = now + relativedelta(months=months)

        rows = db.session.query(
            Qualification.next_due_date,
            QualificationType.code,
            QualificationType.name
        ).join(
            QualificationType, Qualification.qualification_type_id == QualificationType.id
        ).filter(
            Qualification.is_exempt.is_(False),
            Qualification.next_due_date.isnot(None),
            Qualification.next_due_date >= now,
            Qualification.next_due_date < horizon
        ).order_by(Qualification.next_due_date).all()

        by_month = OrderedDict()
        for next_due_date, type_code, type_name in rows:
            month = next_due_date.strftime('%Y-%m')
            bucket = by_month.setdefault(month, {'month': month, 'count': 0, 'by_type': OrderedDict()})
            bucket['count'] += 1
            type_bucket = bucket['by_type'].setdefault(
                type_code, {'type_code': type_code, 'type_name': type_name, 'count': 0}
            )
            type_bucket['count'] += 1

        return [
            {
                'month': bucket['month'],
                'count': bucket['count'],
                'by_type': sorted(bucket['by_type'].values(), key=lambda t: (-t['count'], t['type_code'])),
            }
            for bucket in by_month.values()
        ]
