"""Initial schema: users, close circle, friend requests, journals, reactions

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

friend_request_status = sa.Enum('PENDING', 'ACCEPTED', 'REJECTED', name='friend_request_status')
journal_visibility = sa.Enum('PRIVATE', 'CLOSE_CIRCLE', 'PUBLIC', name='journal_visibility')
reaction_type = sa.Enum('LIKE', name='reaction_type')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('profile_image', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('total_likes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_reads', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('consistency', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reset_password_token_hash', sa.String(), nullable=True),
        sa.Column('reset_password_expires_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_reset_password_token_hash'), 'users', ['reset_password_token_hash'])

    # Two directed rows per membership
    op.create_table(
        'close_circle_members',
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('member_id', sa.String(), nullable=False),
        sa.Column('added_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('owner_id', 'member_id')
    )
    op.create_index(op.f('ix_close_circle_members_member_id'), 'close_circle_members', ['member_id'])

    op.create_table(
        'friend_requests',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('from_user_id', sa.String(), nullable=False),
        sa.Column('to_user_id', sa.String(), nullable=False),
        sa.Column('pair_key', sa.String(), nullable=False),
        sa.Column('status', friend_request_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_friend_requests_from_user_id'), 'friend_requests', ['from_user_id'])
    op.create_index(op.f('ix_friend_requests_to_user_id'), 'friend_requests', ['to_user_id'])
    op.create_index(op.f('ix_friend_requests_pair_key'), 'friend_requests', ['pair_key'])
    op.create_index(
        'uq_friend_requests_pending_pair',
        'friend_requests',
        ['pair_key'],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING'"),
        sqlite_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        'journals',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('author_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('journal_date', sa.Date(), nullable=False),
        sa.Column('visibility', journal_visibility, nullable=False),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('images', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reads_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('author_id', 'journal_date', name='uq_journals_author_date')
    )
    op.create_index(op.f('ix_journals_author_id'), 'journals', ['author_id'])
    op.create_index(op.f('ix_journals_created_at'), 'journals', ['created_at'])

    op.create_table(
        'reactions',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('journal_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', reaction_type, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['journal_id'], ['journals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'journal_id', 'type', name='uq_reactions_user_journal_type')
    )
    op.create_index(op.f('ix_reactions_journal_id'), 'reactions', ['journal_id'])
    op.create_index(op.f('ix_reactions_user_id'), 'reactions', ['user_id'])


def downgrade() -> None:
    op.drop_table('reactions')
    op.drop_table('journals')
    op.drop_index('uq_friend_requests_pending_pair', table_name='friend_requests')
    op.drop_table('friend_requests')
    op.drop_table('close_circle_members')
    op.drop_table('users')
    bind = op.get_bind()
    reaction_type.drop(bind, checkfirst=True)
    journal_visibility.drop(bind, checkfirst=True)
    friend_request_status.drop(bind, checkfirst=True)
