"""ai_mock_interviews

Revision ID: 5c1e9a7d2b40
Revises: 
Create Date: 2026-10-19 10:12:41.503118

Creates the interview and feedback tables. Safe to run against a database
where the tables were already created by create_all().
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1e9a7d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('ai_interviews'):
        op.create_table('ai_interviews',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('level', sa.String(), nullable=False),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('tech_stack', sa.JSON(), nullable=False),
            sa.Column('questions', sa.JSON(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_ai_interviews_user_created', 'ai_interviews', ['user_id', 'created_at'], unique=False)
        op.create_index(op.f('ix_ai_interviews_user_id'), 'ai_interviews', ['user_id'], unique=False)

    if not table_exists('interview_feedback'):
        op.create_table('interview_feedback',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('interview_id', sa.String(length=36), nullable=False),
            sa.Column('transcript', sa.JSON(), nullable=False),
            sa.Column('total_score', sa.Float(), nullable=False),
            sa.Column('category_scores', sa.JSON(), nullable=False),
            sa.Column('strengths', sa.JSON(), nullable=False),
            sa.Column('areas_for_improvement', sa.JSON(), nullable=False),
            sa.Column('final_assessment', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['interview_id'], ['ai_interviews.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('interview_id')
        )


def downgrade() -> None:
    op.drop_table('interview_feedback')
    op.drop_index(op.f('ix_ai_interviews_user_id'), table_name='ai_interviews')
    op.drop_index('idx_ai_interviews_user_created', table_name='ai_interviews')
    op.drop_table('ai_interviews')
