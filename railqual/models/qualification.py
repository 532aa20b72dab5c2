from railqual import db
from railqual.utils.calculations import STATUSES, derive_status
from railqual.utils.helpers import format_date
from datetime import datetime


class Qualification(db.Model):
    """A tracked regulatory requirement for one car.

    ``status`` is a cache of the derivation in ``railqual.utils.calculations``;
    every write path refreshes it.
    """
    __tablename__ = 'qualifications'
    __table_args__ = (
        db.UniqueConstraint('car_id', 'qualification_type_id', name='uq_qualifications_car_type'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.String(50), nullable=False, index=True)  # fleet registry reference, not owned here
    qualification_type_id = db.Column(db.Integer, db.ForeignKey('qualification_types.id', ondelete='RESTRICT'),
                                      nullable=False, index=True)
    status = db.Column(db.Enum(*STATUSES, name='qualification_status', native_enum=False),
                       nullable=False, default='unknown', index=True)
    last_completed_date = db.Column(db.Date, nullable=True)
    next_due_date = db.Column(db.Date, nullable=True, index=True)
    expiry_date = db.Column(db.Date, nullable=True)
    interval_months = db.Column(db.Integer, nullable=True)  # overrides the type default
    completed_by = db.Column(db.String(200), nullable=True)
    completion_shop_code = db.Column(db.String(20), nullable=True)
    certificate_number = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    is_exempt = db.Column(db.Boolean, nullable=False, default=False)
    exempt_reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    qualification_type = db.relationship('QualificationType', back_populates='qualifications', lazy='joined')
    alerts = db.relationship('QualificationAlert', back_populates='qualification', lazy=True)
    
    def refresh_status(self, now):
        """Recompute the cached status against now"""
        self.status = derive_status(self, now)
        return self.status
    
    def to_dict(self):
        qualification_type = self.qualification_type
        return {
            'id': self.id,
            'car_id': self.car_id,
            'qualification_type_id': self.qualification_type_id,
            'type_code': qualification_type.code if qualification_type else None,
            'type_name': qualification_type.name if qualification_type else None,
            'regulatory_body': qualification_type.regulatory_body if qualification_type else None,
            'status': self.status,
            'last_completed_date': format_date(self.last_completed_date),
            'next_due_date': format_date(self.next_due_date),
            'expiry_date': format_date(self.expiry_date),
            'interval_months': self.interval_months,
            'completed_by': self.completed_by,
            'completion_shop_code': self.completion_shop_code,
            'certificate_number': self.certificate_number,
            'notes': self.notes,
            'is_exempt': self.is_exempt,
            'exempt_reason': self.exempt_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
    
    def __repr__(self):
        return f'<Qualification {self.car_id} type={self.qualification_type_id} {self.status}>'
