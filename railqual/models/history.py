"""Append-only history of qualification lifecycle events."""

from railqual import db
from datetime import datetime

HISTORY_ACTIONS = (
    'created',
    'completed',
    'updated',
    'exempted',
    'unexempted',
    'bulk_updated',
)


class QualificationHistory(db.Model):
    __tablename__ = 'qualification_history'
    
    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(50), nullable=False, default='qualification')
    entity_id = db.Column(db.Integer, nullable=False, index=True)
    action = db.Column(db.Enum(*HISTORY_ACTIONS, name='qualification_history_actions', native_enum=False),
                       nullable=False)
    actor_id = db.Column(db.String(100), nullable=True)
    payload = db.Column(db.JSON, nullable=False, default=dict)  # snapshot of changed fields
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    
    def to_dict(self):
        return {
            'id': self.id,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'action': self.action,
            'actor_id': self.actor_id,
            'payload': self.payload,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
    
    def __repr__(self):
        return f'<QualificationHistory {self.action} {self.entity_type}:{self.entity_id}>'
