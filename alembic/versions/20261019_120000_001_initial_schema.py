"""Reports, comments, reactions and profiles.

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the report tables."""

    # Reports table
    op.create_table(
        'reports',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Double(), nullable=False),
        sa.Column('longitude', sa.Double(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('severity', sa.Text(), nullable=False, server_default='medium'),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('author_id', sa.Text(), nullable=True),
        sa.Column('author_name', sa.Text(), nullable=False, server_default='Goose Watcher'),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("type IN ('poop', 'aggressive')", name='ck_reports_type'),
        sa.CheckConstraint("severity IN ('low', 'medium', 'high')", name='ck_reports_severity'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reports_timestamp', 'reports', ['timestamp'])
    op.create_index('ix_reports_type', 'reports', ['type'])

    # Report comments table
    op.create_table(
        'report_comments',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('report_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('user_name', sa.Text(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['reports.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_report_comments_report_id', 'report_comments', ['report_id'])
    op.create_index('ix_report_comments_timestamp', 'report_comments', ['timestamp'])

    # Report reactions table
    op.create_table(
        'report_reactions',
        sa.Column('report_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('reaction_type', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "reaction_type IN ('like', 'upvote')",
            name='ck_report_reactions_reaction_type',
        ),
        sa.ForeignKeyConstraint(['report_id'], ['reports.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('report_id', 'user_id', 'reaction_type')
    )
    op.create_index('ix_report_reactions_report_id', 'report_reactions', ['report_id'])
    op.create_index('ix_report_reactions_timestamp', 'report_reactions', ['timestamp'])

    # Profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('display_name', sa.Text(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=False, server_default=''),
        sa.Column('avatar_emoji', sa.Text(), nullable=False, server_default='🦢'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table('profiles')
    op.drop_index('ix_report_reactions_timestamp', table_name='report_reactions')
    op.drop_index('ix_report_reactions_report_id', table_name='report_reactions')
    op.drop_table('report_reactions')
    op.drop_index('ix_report_comments_timestamp', table_name='report_comments')
    op.drop_index('ix_report_comments_report_id', table_name='report_comments')
    op.drop_table('report_comments')
    op.drop_index('ix_reports_type', table_name='reports')
    op.drop_index('ix_reports_timestamp', table_name='reports')
    op.drop_table('reports')
