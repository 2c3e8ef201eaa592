"""Create reminder_logs idempotency ledger

Revision ID: 001_create_reminder_logs
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_reminder_logs'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'reminder_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('item_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('reminder_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('email_to', sa.String(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One row per trigger; the upsert in the ledger relies on this constraint
        sa.UniqueConstraint('item_id', 'reminder_time', name='uq_reminder_logs_item_trigger'),
        sa.CheckConstraint("status IN ('failed', 'sent')", name='ck_reminder_logs_status'),
    )
    op.create_index('ix_reminder_logs_status', 'reminder_logs', ['status'])
    op.create_index('ix_reminder_logs_user_id', 'reminder_logs', ['user_id'])


def downgrade():
    op.drop_index('ix_reminder_logs_user_id', table_name='reminder_logs')
    op.drop_index('ix_reminder_logs_status', table_name='reminder_logs')
    op.drop_table('reminder_logs')
