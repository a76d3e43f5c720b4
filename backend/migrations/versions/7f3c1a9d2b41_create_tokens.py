"""create tokens table

Revision ID: 7f3c1a9d2b41
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '7f3c1a9d2b41'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'tokens',
        sa.Column('token_id', sa.String(length=40), nullable=False),
        sa.Column(
            'type',
            sa.Enum('access', 'refresh', name='token_type', native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column('client_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('expires', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scope', sa.Text(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint('token_id', 'type', name=op.f('pk_tokens')),
    )
    with op.batch_alter_table('tokens', schema=None) as batch_op:
        batch_op.create_index(
            'ix_tokens_type_user_id_expires', ['type', 'user_id', 'expires'], unique=False
        )
        batch_op.create_index('ix_tokens_type_expires', ['type', 'expires'], unique=False)


def downgrade():
    with op.batch_alter_table('tokens', schema=None) as batch_op:
        batch_op.drop_index('ix_tokens_type_expires')
        batch_op.drop_index('ix_tokens_type_user_id_expires')

    op.drop_table('tokens')
