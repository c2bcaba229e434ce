"""创建files表

Revision ID: 20261019_090000
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261019_090000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """创建files表及bucket索引"""
    op.create_table(
        'files',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('bucket', sa.String(length=255), nullable=False),
        sa.Column('storage_id', sa.String(length=500), nullable=False),
        sa.Column('public_url', sa.String(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_files_bucket', 'files', ['bucket'])


def downgrade() -> None:
    """删除files表"""
    op.drop_index('ix_files_bucket', table_name='files')
    op.drop_table('files')
