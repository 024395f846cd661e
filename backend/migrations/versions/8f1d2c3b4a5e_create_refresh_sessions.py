"""create refresh_sessions

Revision ID: 8f1d2c3b4a5e
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '8f1d2c3b4a5e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'refresh_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('(CURRENT_TIMESTAMP)'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_refresh_sessions')),
        sa.UniqueConstraint('session_id', name='uq_refresh_sessions_session_id'),
    )
    with op.batch_alter_table('refresh_sessions', schema=None) as batch_op:
        batch_op.create_index('ix_refresh_sessions_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_refresh_sessions_expires_at', ['expires_at'], unique=False)


def downgrade():
    with op.batch_alter_table('refresh_sessions', schema=None) as batch_op:
        batch_op.drop_index('ix_refresh_sessions_expires_at')
        batch_op.drop_index('ix_refresh_sessions_user_id')

    op.drop_table('refresh_sessions')
