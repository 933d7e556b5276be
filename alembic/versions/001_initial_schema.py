"""admins and audit_logs tables

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    json_type = sa.JSON() if is_sqlite else postgresql.JSONB(astext_type=sa.Text())
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    # ------------------------------------------------------------------
    # admins
    # ------------------------------------------------------------------
    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subject_id', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('permissions', json_type, nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subject_id'),
    )
    op.create_index('ix_admins_subject_id', 'admins', ['subject_id'], unique=True)

    # ------------------------------------------------------------------
    # audit_logs (append-only)
    # ------------------------------------------------------------------
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('log_id', sa.String(length=36), nullable=False),
        sa.Column('admin_uid', sa.String(length=128), nullable=False),
        sa.Column('admin_email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('details', json_type, nullable=False, server_default='{}'),
        sa.Column('ip_address', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('user_agent', sa.Text(), nullable=False, server_default=''),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('log_id'),
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])
    op.create_index('ix_audit_logs_log_id', 'audit_logs', ['log_id'], unique=True)
    op.create_index('ix_audit_logs_admin_uid', 'audit_logs', ['admin_uid'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    # Serves "by actor, newest first" without a sort
    op.create_index('ix_audit_logs_admin_uid_timestamp', 'audit_logs', ['admin_uid', 'timestamp'])


def downgrade() -> None:
    op.drop_index('ix_audit_logs_admin_uid_timestamp', table_name='audit_logs')
    op.drop_index('ix_audit_logs_timestamp', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action', table_name='audit_logs')
    op.drop_index('ix_audit_logs_admin_uid', table_name='audit_logs')
    op.drop_index('ix_audit_logs_log_id', table_name='audit_logs')
    op.drop_index('ix_audit_logs_id', table_name='audit_logs')
    op.drop_table('audit_logs')

    op.drop_index('ix_admins_subject_id', table_name='admins')
    op.drop_table('admins')
