from railqual import db
from datetime import datetime


class QualificationType(db.Model):
    __tablename__ = 'qualification_types'
    
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    regulatory_body = db.Column(db.String(50), nullable=False, default='AAR')  # AAR, FRA, DOT, TC
    default_interval_months = db.Column(db.Integer, nullable=False, default=120)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    qualifications = db.relationship('Qualification', back_populates='qualification_type', lazy=True)
    
    @classmethod
    def get_active(cls):
        """Active qualification types ordered by name"""
        return cls.query.filter_by(is_active=True).order_by(cls.name).all()
    
    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'regulatory_body': self.regulatory_body,
            'default_interval_months': self.default_interval_months,
            'is_active': self.is_active,
        }
    
    def __repr__(self):
        return f'<QualificationType {self.code}>'


# Standard AAR/FRA/DOT requirements: (code, name, regulatory body, default interval in months)
STANDARD_QUALIFICATION_TYPES = (
    ('TANK_REQUALIFICATION', 'Tank Requalification', 'DOT', 120),
    ('AIR_BRAKE', 'Air Brake Test', 'AAR', 48),
    ('SAFETY_APPLIANCE', 'Safety Appliance Inspection', 'FRA', 60),
    ('HAZMAT_QUALIFICATION', 'Hazmat Qualification', 'DOT', 120),
    ('PRESSURE_TEST', 'Hydrostatic Pressure Test', 'DOT', 120),
    ('VALVE_INSPECTION', 'Safety Relief Valve Inspection', 'AAR', 60),
    ('THICKNESS_TEST', 'Shell Thickness Test', 'DOT', 120),
    ('EXTERIOR_VISUAL', 'Exterior Visual Inspection', 'AAR', 12),
    ('LINING_INSPECTION', 'Interior Lining Inspection', 'AAR', 60),
    ('STUB_SILL', 'Stub Sill Inspection', 'AAR', 120),
)
