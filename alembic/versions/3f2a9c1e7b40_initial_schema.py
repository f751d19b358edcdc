"""initial_schema

Revision ID: 3f2a9c1e7b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1e7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id',             sa.String(length=36),  nullable=False),
        sa.Column('name',           sa.String(length=100), nullable=False),
        sa.Column('email',          sa.String(length=255), nullable=False),
        sa.Column('password_hash',  sa.String(length=255), nullable=False),
        sa.Column('role',           sa.Enum('USER', 'ADMIN', name='account_role', native_enum=False, length=16),
                  nullable=False),
        sa.Column('email_verified', sa.Boolean(),               nullable=False),
        sa.Column('created_at',     sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at',     sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)

    op.create_table(
        'verification_tokens',
        sa.Column('id',          sa.String(length=36),       nullable=False),
        sa.Column('token_hash',  sa.String(length=64),       nullable=False),
        sa.Column('account_id',  sa.String(length=36),       nullable=False),
        sa.Column('expires_at',  sa.DateTime(timezone=True), nullable=False),
        sa.Column('consumed',    sa.Boolean(),               nullable=False),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at',  sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_verification_tokens_token_hash', 'verification_tokens', ['token_hash'], unique=True)
    op.create_index('ix_verification_tokens_account_id', 'verification_tokens', ['account_id'], unique=False)

    op.create_table(
        'posts',
        sa.Column('id',         sa.String(length=36),       nullable=False),
        sa.Column('title',      sa.String(length=255),      nullable=False),
        sa.Column('content',    sa.Text(),                  nullable=False),
        sa.Column('author_id',  sa.String(length=36),       nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['author_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_posts_author_id',  'posts', ['author_id'],  unique=False)
    op.create_index('ix_posts_created_at', 'posts', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_posts_created_at', table_name='posts')
    op.drop_index('ix_posts_author_id',  table_name='posts')
    op.drop_table('posts')
    op.drop_index('ix_verification_tokens_account_id', table_name='verification_tokens')
    op.drop_index('ix_verification_tokens_token_hash', table_name='verification_tokens')
    op.drop_table('verification_tokens')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_table('accounts')
