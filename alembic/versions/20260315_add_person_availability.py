"""Add person availability

Revision ID: a7c4e9d21b58
Revises: 3f1a6c2b9d40
Create Date: 2026-03-15

Adds people.availability: a weekly template of role flags by day of week
plus per-date exceptions. NULL means the person is always available.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a7c4e9d21b58'
down_revision: Union[str, None] = '3f1a6c2b9d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('people', schema=None) as batch_op:
        batch_op.add_column(sa.Column('availability', sa.JSON(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('people', schema=None) as batch_op:
        batch_op.drop_column('availability')
