"""Qualification lifecycle service for RailQual application."""

from datetime import date, datetime, timedelta
from flask import current_app
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from railqual import db
from railqual.models import Qualification, QualificationType
from railqual.services.audit import AuditService
from railqual.utils.calculations import (
    DUE_SOON_THRESHOLD_DAYS,
    DUE_THRESHOLD_DAYS,
    PRIORITY_LABELS,
    STATUS_CURRENT,
    STATUS_DUE,
    STATUS_DUE_SOON,
    STATUS_EXEMPT,
    STATUS_OVERDUE,
    STATUS_UNKNOWN,
    STATUS_URGENCY,
    compute_next_due,
    derive_status,
    effective_interval,
    score_priority,
)
from railqual.utils.error_handler import BulkLimitError, DuplicateRecordError, ValidationError
from railqual.utils.helpers import format_date, parse_bool, parse_date, today
from railqual.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)

BULK_UPDATE_MAX = 500
BULK_UPDATE_FIELDS = ('status', 'is_exempt', 'exempt_reason', 'notes')
UPDATE_FIELDS = (
    'interval_months',
    'notes',
    'is_exempt',
    'exempt_reason',
    'completed_by',
    'completion_shop_code',
    'certificate_number',
)
DATE_FIELDS = ('last_completed_date', 'next_due_date', 'expiry_date', 'completed_date')


def _parse_interval(value):
    if value is None or value == '':
        return None
    try:
        interval = int(value)
    except (TypeError, ValueError):
        raise ValidationError('interval_months must be a whole number of months')
    if interval <= 0:
        raise ValidationError('interval_months must be positive')
    return interval


def _clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _reject_fields(data, allowed, operation):
    provided = {key for key, value in data.items() if value is not None}
    dates = sorted(provided & set(DATE_FIELDS))
    if dates:
        raise ValidationError(
            f"{', '.join(dates)} cannot be set by {operation}; dates change only when a qualification is completed"
        )
    unknown = sorted(provided - set(allowed))
    if unknown:
        raise ValidationError(f"Field(s) not allowed in {operation}: {', '.join(unknown)}")


def _status_expression(now, is_exempt=None):
    """SQL rendition of the status derivation for set-based updates.

    ``is_exempt`` is the value a patch writes, if any; UPDATE expressions see
    the pre-update row, so a patched flag has to be folded in here.
    """
    if is_exempt:
        return STATUS_EXEMPT

    whens = []
    if is_exempt is None:
        whens.append((Qualification.is_exempt.is_(True), STATUS_EXEMPT))
    whens.extend([
        (Qualification.next_due_date.is_(None), STATUS_UNKNOWN),
        (Qualification.next_due_date < now, STATUS_OVERDUE),
        (Qualification.next_due_date <= now + timedelta(days=DUE_THRESHOLD_DAYS), STATUS_DUE),
        (Qualification.next_due_date <= now + timedelta(days=DUE_SOON_THRESHOLD_DAYS), STATUS_DUE_SOON),
    ])
    return case(*whens, else_=STATUS_CURRENT)


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class QualificationService:
    """Service for qualification records: queries, create, update, complete, bulk update."""

    @staticmethod
    def list_qualification_types():
        """Active qualification types (reference data)."""
        return QualificationType.get_active()

    @staticmethod
    def list_qualifications(filters=None, limit=None, offset=0):
        """Filtered page of qualifications plus the total matching count."""
        filters = filters or {}
        query = Qualification.query

        if filters.get('car_id'):
            query = query.filter(Qualification.car_id == str(filters['car_id']))
        if filters.get('qualification_type_id'):
            query = query.filter(Qualification.qualification_type_id == filters['qualification_type_id'])
        if filters.get('type_code'):
            query = query.join(QualificationType, Qualification.qualification_type_id == QualificationType.id) \
                .filter(QualificationType.code == filters['type_code'])
        if filters.get('status'):
            query = query.filter(Qualification.status == filters['status'])

        total = query.order_by(None).count()

        limit = limit or current_app.config.get('DEFAULT_PAGE_SIZE', 50)
        qualifications = query.order_by(
            case(STATUS_URGENCY, value=Qualification.status, else_=len(STATUS_URGENCY) + 1),
            Qualification.next_due_date.asc().nulls_last(),
            Qualification.id
        ).offset(offset or 0).limit(limit).all()

        return {'qualifications': qualifications, 'total': total}

    @staticmethod
    def get_qualification(qualification_id):
        return db.session.get(Qualification, qualification_id)

    @staticmethod
    def get_car_qualifications(car_id):
        """All qualifications for one car, ordered by type name."""
        return Qualification.query.join(
            QualificationType, Qualification.qualification_type_id == QualificationType.id
        ).filter(
            Qualification.car_id == str(car_id)
        ).order_by(QualificationType.name).all()

    @staticmethod
    def get_qualification_history(qualification_id):
        return AuditService.get_history(qualification_id)

    @staticmethod
    def create_qualification(data, actor_id=None, now=None):
        """Create a qualification and its 'created' history event atomically."""
        now = now or today()

        car_id = _clean_text(data.get('car_id'))
        type_id = data.get('qualification_type_id')
        if not car_id or type_id in (None, ''):
            raise ValidationError('car_id and qualification_type_id are required')

        # Dates are validated before anything touches the store
        last_completed = parse_date(data.get('last_completed_date'), 'last_completed_date')
        next_due = parse_date(data.get('next_due_date'), 'next_due_date')
        expiry = parse_date(data.get('expiry_date'), 'expiry_date')
        interval = _parse_interval(data.get('interval_months'))

        is_exempt = bool(parse_bool(data.get('is_exempt')))
        exempt_reason = _clean_text(data.get('exempt_reason'))
        if is_exempt and not exempt_reason:
            raise ValidationError('exempt_reason is required when is_exempt is true')

        try:
            type_id = int(type_id)
        except (TypeError, ValueError):
            raise ValidationError('qualification_type_id must be an integer')
        qualification_type = db.session.get(QualificationType, type_id)
        if qualification_type is None:
            raise ValidationError(f'Unknown qualification_type_id: {type_id}')

        qualification = Qualification(
            car_id=car_id,
            qualification_type_id=qualification_type.id,
            interval_months=interval,
            last_completed_date=last_completed,
            completed_by=_clean_text(data.get('completed_by')),
            completion_shop_code=_clean_text(data.get('completion_shop_code')),
            certificate_number=_clean_text(data.get('certificate_number')),
            notes=_clean_text(data.get('notes')),
            is_exempt=is_exempt,
            exempt_reason=exempt_reason if is_exempt else None
        )

        if next_due is None and last_completed is not None:
            next_due, computed_expiry = compute_next_due(
                last_completed, effective_interval(qualification, qualification_type)
            )
            expiry = expiry or computed_expiry
        elif next_due is not None and expiry is None:
            expiry = date(next_due.year, 12, 31)

        qualification.next_due_date = next_due
        qualification.expiry_date = expiry
        qualification.refresh_status(now)

        try:
            db.session.add(qualification)
            db.session.flush()
            AuditService.record_event(qualification.id, 'created', actor_id, {
                'new_status': qualification.status,
                'new_due_date': format_date(qualification.next_due_date),
            })
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise DuplicateRecordError(
                f'Qualification already exists for car {car_id} and type {qualification_type.code}'
            ) from e
        except SQLAlchemyError:
            db.session.rollback()
            raise

        logger.info(f"Created qualification {qualification.id} ({qualification_type.code}) for car {car_id}")
        return qualification

    @staticmethod
    def update_qualification(qualification_id, data, actor_id=None, now=None):
        """Edit interval, exemption, notes or provenance of one qualification."""
        data = data or {}
        _reject_fields(data, UPDATE_FIELDS, 'update')
        now = now or today()

        changes = {}
        if 'interval_months' in data and data['interval_months'] is not None:
            changes['interval_months'] = _parse_interval(data['interval_months'])
        if data.get('is_exempt') is not None:
            changes['is_exempt'] = bool(parse_bool(data['is_exempt']))
        for field in ('notes', 'exempt_reason', 'completed_by', 'completion_shop_code', 'certificate_number'):
            if data.get(field) is not None:
                changes[field] = _clean_text(data[field])

        qualification = db.session.get(Qualification, qualification_id)
        if qualification is None:
            return None
        if not changes:
            return qualification

        was_exempt = qualification.is_exempt
        old_status = qualification.status
        old_due = qualification.next_due_date

        will_be_exempt = changes.get('is_exempt', was_exempt)
        if will_be_exempt and not changes.get('exempt_reason', qualification.exempt_reason):
            raise ValidationError('exempt_reason is required when is_exempt is true')
        if not will_be_exempt and was_exempt:
            changes['exempt_reason'] = None

        diff = {}
        for field, value in changes.items():
            previous = getattr(qualification, field)
            if previous != value:
                diff[field] = [_jsonable(previous), _jsonable(value)]
                setattr(qualification, field, value)

        if 'interval_months' in diff and qualification.last_completed_date is not None:
            qualification.next_due_date, qualification.expiry_date = compute_next_due(
                qualification.last_completed_date,
                effective_interval(qualification, qualification.qualification_type)
            )

        qualification.refresh_status(now)

        if was_exempt != qualification.is_exempt:
            action = 'exempted' if qualification.is_exempt else 'unexempted'
        else:
            action = 'updated'

        try:
            AuditService.record_event(qualification.id, action, actor_id, {
                'changes': diff,
                'old_status': old_status,
                'new_status': qualification.status,
                'old_due_date': format_date(old_due),
                'new_due_date': format_date(qualification.next_due_date),
            })
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        return qualification

    @staticmethod
    def complete_qualification(qualification_id, data, actor_id=None, now=None):
        """Record a completion and advance the due date.

        Returns None when the qualification does not exist.
        """
        data = data or {}
        completed_date = parse_date(data.get('completed_date'), 'completed_date')
        if completed_date is None:
            raise ValidationError('completed_date is required')
        now = now or today()

        qualification = db.session.get(Qualification, qualification_id)
        if qualification is None:
            return None

        old_status = qualification.status
        old_due = qualification.next_due_date

        next_due, expiry = compute_next_due(
            completed_date,
            effective_interval(qualification, qualification.qualification_type)
        )

        qualification.last_completed_date = completed_date
        qualification.next_due_date = next_due
        qualification.expiry_date = expiry
        for field in ('completed_by', 'completion_shop_code', 'certificate_number', 'notes'):
            value = _clean_text(data.get(field))
            if value is not None:
                setattr(qualification, field, value)
        qualification.refresh_status(now)

        try:
            AuditService.record_event(qualification.id, 'completed', actor_id, {
                'completed_date': format_date(completed_date),
                'old_status': old_status,
                'new_status': qualification.status,
                'old_due_date': format_date(old_due),
                'new_due_date': format_date(next_due),
                'certificate_number': qualification.certificate_number,
                'completion_shop_code': qualification.completion_shop_code,
                'notes': _clean_text(data.get('notes')),
            })
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        logger.info(f"Completed qualification {qualification.id}; next due {next_due}")
        return qualification

    @staticmethod
    def bulk_update_qualifications(ids, data, actor_id=None, now=None):
        """Apply status/exemption/notes to many qualifications in one write.

        History events for the affected rows are written best-effort in the
        background and never undo the update.
        """
        ids = list(ids or [])
        if not ids:
            return {'updated': 0}

        limit = current_app.config.get('BULK_UPDATE_MAX', BULK_UPDATE_MAX)
        if len(ids) > limit:
            raise BulkLimitError(limit, len(ids))

        values = QualificationService._bulk_values(data)
        now = now or today()

        try:
            ids = [int(qualification_id) for qualification_id in ids]
        except (TypeError, ValueError):
            raise ValidationError('ids must be integers')

        matched_ids = [
            row.id for row in db.session.query(Qualification.id).filter(Qualification.id.in_(ids)).all()
        ]
        if not matched_ids:
            return {'updated': 0}

        payload = {key: value for key, value in values.items()}
        values['status'] = _status_expression(now, values.get('is_exempt'))
        values['updated_at'] = datetime.utcnow()

        stmt = update(Qualification).where(
            Qualification.id.in_(matched_ids)
        ).values(**values).execution_options(synchronize_session=False)

        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        updated = result.rowcount or 0
        log_audit_event('bulk_update', actor_id=actor_id, details={
            'requested': len(ids),
            'updated': updated,
            'fields': sorted(payload),
        })

        AuditService.dispatch_best_effort(matched_ids, 'bulk_updated', actor_id, payload)
        return {'updated': updated}

    @staticmethod
    def _bulk_values(data):
        """Validate a bulk patch and turn it into column values."""
        data = data or {}
        _reject_fields(data, BULK_UPDATE_FIELDS, 'bulk update')

        values = {}
        status = data.get('status')
        if status is not None:
            if status != STATUS_EXEMPT:
                raise ValidationError(
                    f"status is derived from due dates; only '{STATUS_EXEMPT}' can be set in a bulk update"
                )
            values['is_exempt'] = True

        if data.get('is_exempt') is not None:
            is_exempt = bool(parse_bool(data['is_exempt']))
            if values.get('is_exempt') and not is_exempt:
                raise ValidationError("status 'exempt' conflicts with is_exempt false")
            values['is_exempt'] = is_exempt

        exempt_reason = _clean_text(data.get('exempt_reason'))
        if values.get('is_exempt'):
            if not exempt_reason:
                raise ValidationError('exempt_reason is required when is_exempt is true')
            values['exempt_reason'] = exempt_reason
        elif values.get('is_exempt') is False:
            values['exempt_reason'] = None
        elif exempt_reason:
            raise ValidationError('exempt_reason can only be set together with is_exempt')

        notes = _clean_text(data.get('notes'))
        if notes is not None:
            values['notes'] = notes

        if not values:
            raise ValidationError('No fields to update')
        return values

    @staticmethod
    def get_qualification_priority(car_id, now=None):
        """Recommended shop-assignment priority for a car (1 Critical .. 4 Low)."""
        now = now or today()
        qualifications = Qualification.query.filter(
            Qualification.car_id == str(car_id),
            Qualification.is_exempt.is_(False)
        ).all()

        counts = {STATUS_OVERDUE: 0, STATUS_DUE: 0, STATUS_DUE_SOON: 0}
        for qualification in qualifications:
            status = derive_status(qualification, now)
            if status in counts:
                counts[status] += 1

        due_dates = [q.next_due_date for q in qualifications if q.next_due_date is not None]
        priority, reason = score_priority(counts[STATUS_OVERDUE], counts[STATUS_DUE], counts[STATUS_DUE_SOON])

        return {
            'car_id': str(car_id),
            'recommended_priority': priority,
            'priority_label': PRIORITY_LABELS[priority],
            'reason': reason,
            'overdue_count': counts[STATUS_OVERDUE],
            'due_count': counts[STATUS_DUE],
            'due_soon_count': counts[STATUS_DUE_SOON],
            'earliest_due': format_date(min(due_dates)) if due_dates else None,
        }
