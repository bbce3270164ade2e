"""Initial schema - news, trending scores, view markers, job leases

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

Based on the SQLAlchemy models defined in database/models/.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==================================================
    # NEWS
    # ==================================================

    op.create_table(
        'news',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('excerpt', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('published_at', sa.DateTime, nullable=True),
        sa.Column('view_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('meta', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_news_status_published', 'news', ['status', 'published_at'])

    # ==================================================
    # TRENDING
    # ==================================================

    op.create_table(
        'trending_scores',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('member', sa.String(50), nullable=False),
        sa.Column('score', sa.Float, nullable=False, server_default='0'),
        sa.UniqueConstraint('key', 'member', name='uq_trending_key_member'),
    )
    op.create_index('idx_trending_key_score', 'trending_scores', ['key', 'score'])

    op.create_table(
        'view_markers',
        sa.Column('viewer_id', sa.String(100), primary_key=True),
        sa.Column('article_id', sa.Integer, primary_key=True),
        sa.Column('viewed_at', sa.Float, nullable=False),
    )
    op.create_index('ix_view_markers_viewed_at', 'view_markers', ['viewed_at'])

    op.create_table(
        'job_leases',
        sa.Column('name', sa.String(50), primary_key=True),
        sa.Column('holder', sa.String(100), nullable=True),
        sa.Column('expires_at', sa.Float, nullable=True),
        sa.Column('last_run_at', sa.Float, nullable=True),
    )


def downgrade() -> None:
    op.drop_table('job_leases')
    op.drop_index('ix_view_markers_viewed_at', table_name='view_markers')
    op.drop_table('view_markers')
    op.drop_index('idx_trending_key_score', table_name='trending_scores')
    op.drop_table('trending_scores')
    op.drop_index('idx_news_status_published', table_name='news')
    op.drop_table('news')
