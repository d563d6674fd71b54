"""create_sampling_tables

Revision ID: 5a1f0c2e9b7d
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1f0c2e9b7d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create controls, sampling and evidence tables."""

    op.create_table('controls',
        sa.Column('control_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('frequency_label', sa.String(length=100), nullable=False),
        sa.Column('risk_rating', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('control_id'),
        comment='Controls registered for sampling'
    )

    op.create_table('sampling_classifications',
        sa.Column('control_id', sa.String(length=100), nullable=False),
        sa.Column('requires_sampling', sa.Boolean(), nullable=False),
        sa.Column('sample_count', sa.Integer(), nullable=False),
        sa.Column('methodology', sa.String(length=20), nullable=False),
        sa.Column('frequency_key', sa.String(length=100), nullable=True),
        sa.Column('annualized_count', sa.Integer(), nullable=False),
        sa.Column('audit_months', sa.Integer(), nullable=False),
        sa.Column('risk_level', sa.String(length=1), nullable=True),
        sa.Column('recognized_frequency', sa.Boolean(), nullable=False),
        sa.Column('classified_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['control_id'], ['controls.control_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('control_id'),
        comment='Derived sampling requirement per control'
    )

    op.create_table('sampling_configurations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('control_id', sa.String(length=100), nullable=False),
        sa.Column('sample_count', sa.Integer(), nullable=False),
        sa.Column('methodology', sa.String(length=20), nullable=False),
        sa.Column('period_type', sa.String(length=30), nullable=False),
        sa.Column('audit_start', sa.Date(), nullable=False),
        sa.Column('audit_end', sa.Date(), nullable=False),
        sa.Column('periods', sa.JSON(), nullable=False),
        sa.Column('minimum_interval_days', sa.Integer(), nullable=False),
        sa.Column('seed', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('approved_by', sa.String(length=255), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['control_id'], ['controls.control_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        comment='Sampling configurations, retained append-only for audit trail'
    )
    op.create_index('ix_sampling_configurations_id', 'sampling_configurations', ['id'], unique=False)
    op.create_index('ix_sampling_configurations_control_id', 'sampling_configurations', ['control_id'], unique=False)
    # At most one active configuration per control
    op.create_index(
        'ux_sampling_configurations_control_active',
        'sampling_configurations',
        ['control_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    op.create_table('generated_samples',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sampling_config_id', sa.Uuid(), nullable=False),
        sa.Column('period_id', sa.String(length=50), nullable=False),
        sa.Column('period_name', sa.String(length=100), nullable=False),
        sa.Column('sample_date', sa.Date(), nullable=False),
        sa.Column('sample_index', sa.Integer(), nullable=False),
        sa.Column('is_weekend', sa.Boolean(), nullable=False),
        sa.Column('is_holiday', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(['sampling_config_id'], ['sampling_configurations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sampling_config_id', 'sample_date', name='uq_generated_samples_config_date'),
        comment='Sample dates selected for a sampling configuration'
    )
    op.create_index('ix_generated_samples_id', 'generated_samples', ['id'], unique=False)
    op.create_index('ix_generated_samples_sampling_config_id', 'generated_samples', ['sampling_config_id'], unique=False)

    op.create_table('evidence_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('control_id', sa.String(length=100), nullable=False),
        sa.Column('sampling_config_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('sample_dates', sa.JSON(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['control_id'], ['controls.control_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sampling_config_id'], ['sampling_configurations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        comment='Evidence requests for approved sample dates'
    )
    op.create_index('ix_evidence_requests_id', 'evidence_requests', ['id'], unique=False)
    op.create_index('ix_evidence_requests_control_id', 'evidence_requests', ['control_id'], unique=False)
    op.create_index('ix_evidence_requests_sampling_config_id', 'evidence_requests', ['sampling_config_id'], unique=False)

    op.create_table('evidence_submissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('evidence_request_id', sa.Uuid(), nullable=False),
        sa.Column('sample_date', sa.Date(), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('uploaded_by', sa.String(length=255), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=255), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['evidence_request_id'], ['evidence_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        comment='Evidence submitted by the client for an evidence request'
    )
    op.create_index('ix_evidence_submissions_id', 'evidence_submissions', ['id'], unique=False)
    op.create_index('ix_evidence_submissions_evidence_request_id', 'evidence_submissions', ['evidence_request_id'], unique=False)

    op.create_table('sampling_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('control_id', sa.String(length=100), nullable=False),
        sa.Column('sampling_config_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('performed_by', sa.String(length=255), nullable=False),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('details', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['control_id'], ['controls.control_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        comment='Audit trail of sampling workflow actions'
    )
    op.create_index('ix_sampling_audit_logs_id', 'sampling_audit_logs', ['id'], unique=False)
    op.create_index('ix_sampling_audit_logs_control_id', 'sampling_audit_logs', ['control_id'], unique=False)
    op.create_index('ix_sampling_audit_logs_sampling_config_id', 'sampling_audit_logs', ['sampling_config_id'], unique=False)


def downgrade() -> None:
    """Drop the sampling tables."""
    op.drop_index('ix_sampling_audit_logs_sampling_config_id', table_name='sampling_audit_logs')
    op.drop_index('ix_sampling_audit_logs_control_id', table_name='sampling_audit_logs')
    op.drop_index('ix_sampling_audit_logs_id', table_name='sampling_audit_logs')
    op.drop_table('sampling_audit_logs')
    op.drop_index('ix_evidence_submissions_evidence_request_id', table_name='evidence_submissions')
    op.drop_index('ix_evidence_submissions_id', table_name='evidence_submissions')
    op.drop_table('evidence_submissions')
    op.drop_index('ix_evidence_requests_sampling_config_id', table_name='evidence_requests')
    op.drop_index('ix_evidence_requests_control_id', table_name='evidence_requests')
    op.drop_index('ix_evidence_requests_id', table_name='evidence_requests')
    op.drop_table('evidence_requests')
    op.drop_index('ix_generated_samples_sampling_config_id', table_name='generated_samples')
    op.drop_index('ix_generated_samples_id', table_name='generated_samples')
    op.drop_table('generated_samples')
    op.drop_index('ux_sampling_configurations_control_active', table_name='sampling_configurations')
    op.drop_index('ix_sampling_configurations_control_id', table_name='sampling_configurations')
    op.drop_index('ix_sampling_configurations_id', table_name='sampling_configurations')
    op.drop_table('sampling_configurations')
    op.drop_table('sampling_classifications')
    op.drop_table('controls')
