"""Qualifications engine tables and standard qualification types

Revision ID: 20261018_5b7e2c91d3a4
Revises: 
Create Date: 2026-10-18 09:12:40.517231

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20261018_5b7e2c91d3a4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    qualification_types = op.create_table('qualification_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('regulatory_body', sa.String(length=50), nullable=False, server_default='AAR'),
        sa.Column('default_interval_months', sa.Integer(), nullable=False, server_default='120'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qualification_types_code', 'qualification_types', ['code'], unique=True)
    
    op.create_table('qualifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('car_id', sa.String(length=50), nullable=False),
        sa.Column('qualification_type_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=8), nullable=False, server_default='unknown'),
        sa.Column('last_completed_date', sa.Date(), nullable=True),
        sa.Column('next_due_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('interval_months', sa.Integer(), nullable=True),
        sa.Column('completed_by', sa.String(length=200), nullable=True),
        sa.Column('completion_shop_code', sa.String(length=20), nullable=True),
        sa.Column('certificate_number', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_exempt', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('exempt_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('now()')),
        sa.CheckConstraint(
            "status IN ('unknown', 'current', 'due', 'due_soon', 'overdue', 'exempt')",
            name='ck_qualifications_status'
        ),
        sa.ForeignKeyConstraint(['qualification_type_id'], ['qualification_types.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('car_id', 'qualification_type_id', name='uq_qualifications_car_type')
    )
    op.create_index('ix_qualifications_car_id', 'qualifications', ['car_id'])
    op.create_index('ix_qualifications_qualification_type_id', 'qualifications', ['qualification_type_id'])
    op.create_index('ix_qualifications_status', 'qualifications', ['status'])
    op.create_index('ix_qualifications_next_due_date', 'qualifications', ['next_due_date'])
    
    op.create_table('qualification_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('qualification_id', sa.Integer(), nullable=False),
        sa.Column('car_id', sa.String(length=50), nullable=False),
        sa.Column('qualification_type_id', sa.Integer(), nullable=False),
        sa.Column('alert_type', sa.String(length=10), nullable=False),
        sa.Column('alert_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('days_until_due', sa.Integer(), nullable=True),
        sa.Column('is_acknowledged', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('acknowledged_by', sa.String(length=100), nullable=True),
        sa.Column('acknowledged_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.text('now()')),
        sa.CheckConstraint(
            "alert_type IN ('warning_90', 'warning_60', 'warning_30', 'overdue', 'expired')",
            name='ck_qualification_alerts_type'
        ),
        sa.ForeignKeyConstraint(['qualification_id'], ['qualifications.id']),
        sa.ForeignKeyConstraint(['qualification_type_id'], ['qualification_types.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qualification_alerts_qualification_id', 'qualification_alerts', ['qualification_id'])
    op.create_index('ix_qualification_alerts_car_id', 'qualification_alerts', ['car_id'])
    op.create_index('ix_qualification_alerts_alert_type', 'qualification_alerts', ['alert_type'])
    op.create_index('ix_qualification_alerts_is_acknowledged', 'qualification_alerts', ['is_acknowledged'])
    
    op.create_table('qualification_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False, server_default='qualification'),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=12), nullable=False),
        sa.Column('actor_id', sa.String(length=100), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qualification_history_entity_id', 'qualification_history', ['entity_id'])
    op.create_index('ix_qualification_history_created_at', 'qualification_history', ['created_at'])
    
    # Seed standard qualification types
    op.bulk_insert(qualification_types, [
        {'code': 'TANK_REQUALIFICATION', 'name': 'Tank Requalification', 'regulatory_body': 'DOT', 'default_interval_months': 120},
        {'code': 'AIR_BRAKE', 'name': 'Air Brake Test', 'regulatory_body': 'AAR', 'default_interval_months': 48},
        {'code': 'SAFETY_APPLIANCE', 'name': 'Safety Appliance Inspection', 'regulatory_body': 'FRA', 'default_interval_months': 60},
        {'code': 'HAZMAT_QUALIFICATION', 'name': 'Hazmat Qualification', 'regulatory_body': 'DOT', 'default_interval_months': 120},
        {'code': 'PRESSURE_TEST', 'name': 'Hydrostatic Pressure Test', 'regulatory_body': 'DOT', 'default_interval_months': 120},
        {'code': 'VALVE_INSPECTION', 'name': 'Safety Relief Valve Inspection', 'regulatory_body': 'AAR', 'default_interval_months': 60},
        {'code': 'THICKNESS_TEST', 'name': 'Shell Thickness Test', 'regulatory_body': 'DOT', 'default_interval_months': 120},
        {'code': 'EXTERIOR_VISUAL', 'name': 'Exterior Visual Inspection', 'regulatory_body': 'AAR', 'default_interval_months': 12},
        {'code': 'LINING_INSPECTION', 'name': 'Interior Lining Inspection', 'regulatory_body': 'AAR', 'default_interval_months': 60},
        {'code': 'STUB_SILL', 'name': 'Stub Sill Inspection', 'regulatory_body': 'AAR', 'default_interval_months': 120},
    ])


def downgrade():
    op.drop_table('qualification_history')
    op.drop_table('qualification_alerts')
    op.drop_table('qualifications')
    op.drop_table('qualification_types')
