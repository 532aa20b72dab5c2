from railqual import db
from railqual.utils.helpers import format_date
from datetime import datetime

ALERT_TYPES = ('warning_90', 'warning_60', 'warning_30', 'overdue', 'expired')


class QualificationAlert(db.Model):
    """Notice that a qualification is nearing or past its due date.

    Rows are written by the alert generation job; only the acknowledgment
    fields change afterwards.
    """
    __tablename__ = 'qualification_alerts'
    
    id = db.Column(db.Integer, primary_key=True)
    qualification_id = db.Column(db.Integer, db.ForeignKey('qualifications.id'), nullable=False, index=True)
    car_id = db.Column(db.String(50), nullable=False, index=True)
    qualification_type_id = db.Column(db.Integer, db.ForeignKey('qualification_types.id'), nullable=False)
    alert_type = db.Column(db.Enum(*ALERT_TYPES, name='qualification_alert_types', native_enum=False),
                           nullable=False, index=True)
    alert_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    days_until_due = db.Column(db.Integer, nullable=True)
    is_acknowledged = db.Column(db.Boolean, nullable=False, default=False, index=True)
    acknowledged_by = db.Column(db.String(100), nullable=True)
    acknowledged_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    qualification = db.relationship('Qualification', back_populates='alerts')
    qualification_type = db.relationship('QualificationType')
    
    def to_dict(self):
        qualification_type = self.qualification_type
        return {
            'id': self.id,
            'qualification_id': self.qualification_id,
            'car_id': self.car_id,
            'qualification_type_id': self.qualification_type_id,
            'type_code': qualification_type.code if qualification_type else None,
            'type_name': qualification_type.name if qualification_type else None,
            'alert_type': self.alert_type,
            'alert_date': format_date(self.alert_date),
            'due_date': format_date(self.due_date),
            'days_until_due': self.days_until_due,
            'is_acknowledged': self.is_acknowledged,
            'acknowledged_by': self.acknowledged_by,
            'acknowledged_at': self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
    
    def __repr__(self):
        return f'<QualificationAlert {self.alert_type} for {self.qualification_id}>'
