"""Create uploads table

Revision ID: 001_create_uploads
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from uploader.config.settings import get_settings

# revision identifiers, used by Alembic.
revision: str = '001_create_uploads'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the uploads table, and its id sequence on PostgreSQL."""
    settings = get_settings()
    table = settings.upload_table
    uses_sequence = op.get_bind().dialect.name == "postgresql"

    if uses_sequence:
        op.execute(sa.schema.CreateSequence(sa.Sequence(settings.upload_sequence)))
        id_column = sa.Column(
            'upload_id', sa.Integer(), primary_key=True,
            server_default=sa.text(f"nextval('{settings.upload_sequence}')"))
    else:
        id_column = sa.Column(
            'upload_id', sa.Integer(), primary_key=True, autoincrement=True)

    op.create_table(
        table,
        id_column,
        sa.Column('mime_type', sa.String(64), nullable=True),
        sa.Column('extension', sa.String(16), nullable=True),
        sa.Column('bytes', sa.BigInteger(), nullable=True),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('parent_upload_id', sa.Integer(), nullable=True),
        sqlite_autoincrement=not uses_sequence,
    )
    op.create_index(f'idx_{table}_parent', table, ['parent_upload_id'])


def downgrade() -> None:
    """Drop the uploads table and sequence."""
    settings = get_settings()
    table = settings.upload_table

    op.drop_index(f'idx_{table}_parent', table_name=table)
    op.drop_table(table)
    if op.get_bind().dialect.name == "postgresql":
        op.execute(sa.schema.DropSequence(sa.Sequence(settings.upload_sequence)))
