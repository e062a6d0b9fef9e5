"""initial prompt wall schema (users, categories, prompts, submissions, comments)

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-19 16:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f2a9c1d7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120)),
        sa.Column('email', sa.String(length=200), unique=True),
        sa.Column('password', sa.String(length=200)),
        sa.Column('image', sa.String(length=500)),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='USER'),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )

    op.create_table(
        'prompt_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('description', sa.String(length=300)),
        sa.Column('color', sa.String(length=20)),
        sa.Column('icon', sa.String(length=50)),
    )

    # scheduled_for is timestamptz on postgres; stored as UTC everywhere
    op.create_table(
        'prompts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('prompt_categories.id'), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('tags', sa.Text()),
        sa.Column('allowed_types', sa.String(length=200)),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('max_submissions', sa.Integer()),
        sa.Column('submission_deadline', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_prompts_scheduled_for', 'prompts', ['scheduled_for'])
    op.create_index('ix_prompts_is_active', 'prompts', ['is_active'])

    op.create_table(
        'submissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('prompt_id', sa.Integer(), sa.ForeignKey('prompts.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=200)),
        sa.Column('description', sa.Text()),
        sa.Column('text_content', sa.Text()),
        sa.Column('image_url', sa.String(length=500)),
        sa.Column('video_url', sa.String(length=500)),
        sa.Column('thumbnail_url', sa.String(length=500)),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('likes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submitted_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('user_id', 'prompt_id', name='uq_submission_user_prompt'),
    )
    op.create_index('ix_submissions_submitted_at', 'submissions', ['submitted_at'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('submission_id', sa.Integer(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )


def downgrade():
    op.drop_table('comments')
    op.drop_index('ix_submissions_submitted_at', table_name='submissions')
    op.drop_table('submissions')
    op.drop_index('ix_prompts_is_active', table_name='prompts')
    op.drop_index('ix_prompts_scheduled_for', table_name='prompts')
    op.drop_table('prompts')
    op.drop_table('prompt_categories')
    op.drop_table('users')
