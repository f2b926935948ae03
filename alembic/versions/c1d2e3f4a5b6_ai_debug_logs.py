"""Create ai_debug_logs

Revision ID: c1d2e3f4a5b6
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = 'c1d2e3f4a5b6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'ai_debug_logs',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('household_id', sa.String(), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('model', sa.String(), nullable=False),
        sa.Column('operation', sa.String(), nullable=False),
        sa.Column('request_json_sanitized', sa.Text(), nullable=False, server_default=''),
        sa.Column('response_json_sanitized', sa.Text(), nullable=False, server_default=''),
        sa.Column('status_code', sa.Integer(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('error', sa.Text(), nullable=True),
    )
    op.create_index('ix_ai_debug_logs_id', 'ai_debug_logs', ['id'])
    op.create_index('ix_ai_debug_logs_household_id', 'ai_debug_logs', ['household_id'])
    op.create_index('ix_ai_debug_logs_created_at', 'ai_debug_logs', ['created_at'])
    op.create_index('ix_ai_debug_logs_provider_operation', 'ai_debug_logs', ['provider', 'operation'])
    op.create_index('ix_ai_debug_logs_success', 'ai_debug_logs', ['success'])


def downgrade() -> None:
    op.drop_index('ix_ai_debug_logs_success', table_name='ai_debug_logs')
    op.drop_index('ix_ai_debug_logs_provider_operation', table_name='ai_debug_logs')
    op.drop_index('ix_ai_debug_logs_created_at', table_name='ai_debug_logs')
    op.drop_index('ix_ai_debug_logs_household_id', table_name='ai_debug_logs')
    op.drop_index('ix_ai_debug_logs_id', table_name='ai_debug_logs')
    op.drop_table('ai_debug_logs')
