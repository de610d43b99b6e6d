"""Initial schema with the knowledge-base documents table

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('topic', sa.String(length=200), nullable=True),
        sa.Column('owner_id', sa.String(length=64), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('embedding', sa.JSON(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('source', sa.String(length=30), nullable=False, server_default='user_upload'),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('syllabus_id', sa.String(length=64), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('usage_count >= 0', name='check_usage_count_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_documents_topic'), 'documents', ['topic'], unique=False)
    op.create_index(op.f('ix_documents_owner_id'), 'documents', ['owner_id'], unique=False)
    op.create_index(op.f('ix_documents_syllabus_id'), 'documents', ['syllabus_id'], unique=False)
    op.create_index('ix_documents_topic_public', 'documents', ['topic', 'is_public'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_documents_topic_public', table_name='documents')
    op.drop_index(op.f('ix_documents_syllabus_id'), table_name='documents')
    op.drop_index(op.f('ix_documents_owner_id'), table_name='documents')
    op.drop_index(op.f('ix_documents_topic'), table_name='documents')
    op.drop_table('documents')
