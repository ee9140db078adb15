"""Create tag_relations and content_objects

Revision ID: 3b7d1c52e9a4
Revises: 
Create Date: 2026-10-18 10:12:07.418230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7d1c52e9a4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Relations tag <-> content object, status is a soft-delete flag
    op.create_table(
        'tag_relations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tag_id', sa.String(length=64), nullable=False),
        sa.Column('object_id', sa.String(length=64), nullable=False),
        sa.Column(
            'status',
            sa.Enum('AVAILABLE', 'HIDDEN', 'DELETED', name='tagrelationstatus', native_enum=False),
            nullable=False,
            server_default='AVAILABLE',
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_tag_relations'),
        sa.UniqueConstraint('tag_id', 'object_id', name='uq_tag_relation_tag_object'),
    )
    op.create_index('ix_tag_relations_tag_id', 'tag_relations', ['tag_id'])
    op.create_index('ix_tag_relations_object_id', 'tag_relations', ['object_id'])

    # Visibility columns of content objects, read for default relation status
    op.create_table(
        'content_objects',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column(
            'status',
            sa.Enum('AVAILABLE', 'CLOSED', 'DELETED', name='contentobjectstatus', native_enum=False),
            nullable=False,
            server_default='AVAILABLE',
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_content_objects'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('content_objects')
    op.drop_index('ix_tag_relations_object_id', table_name='tag_relations')
    op.drop_index('ix_tag_relations_tag_id', table_name='tag_relations')
    op.drop_table('tag_relations')
