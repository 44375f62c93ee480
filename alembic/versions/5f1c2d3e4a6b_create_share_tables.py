"""create users, shares and bootstrap_tokens

Revision ID: 5f1c2d3e4a6b
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '5f1c2d3e4a6b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('api_token', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('api_token'),
    )
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'], unique=False)

    op.create_table(
        'shares',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('doc_id', sa.String(length=64), nullable=False),
        sa.Column('doc_title', sa.String(length=255), server_default='', nullable=False),
        sa.Column('content', sa.Text(), server_default='', nullable=False),
        sa.Column('references', sa.Text(), nullable=True),
        sa.Column('parent_share_id', sa.String(length=64), nullable=True),
        sa.Column('require_password', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('password_hash', sa.String(length=255), server_default='', nullable=False),
        sa.Column('expire_at', sa.DateTime(), nullable=False),
        sa.Column('is_public', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('view_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shares_user_id', 'shares', ['user_id'], unique=False)
    op.create_index('ix_shares_doc_id', 'shares', ['doc_id'], unique=False)
    op.create_index('ix_shares_expire_at', 'shares', ['expire_at'], unique=False)
    op.create_index('ix_shares_deleted_at', 'shares', ['deleted_at'], unique=False)
    op.create_index('idx_shares_user_doc', 'shares', ['user_id', 'doc_id'], unique=False)

    op.create_table(
        'bootstrap_tokens',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )


def downgrade() -> None:
    op.drop_table('bootstrap_tokens')
    op.drop_index('idx_shares_user_doc', table_name='shares')
    op.drop_index('ix_shares_deleted_at', table_name='shares')
    op.drop_index('ix_shares_expire_at', table_name='shares')
    op.drop_index('ix_shares_doc_id', table_name='shares')
    op.drop_index('ix_shares_user_id', table_name='shares')
    op.drop_table('shares')
    op.drop_index('ix_users_deleted_at', table_name='users')
    op.drop_table('users')
