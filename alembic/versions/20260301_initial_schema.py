"""Initial schema

Revision ID: 3f1a6c2b9d40
Revises:
Create Date: 2026-03-01

Reference data (service types, weekly rules, holidays, people, songbook),
services with their role assignments, month generation markers, readings,
playlist entries and the activity log.

UUID columns are CHAR(32) as written by the GUID type on SQLite; on
PostgreSQL the GUID type maps to the native UUID type.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a6c2b9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.CHAR(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('service_types',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('has_teaching', sa.Boolean(), nullable=False),
        sa.Column('has_testimonies', sa.Boolean(), nullable=False),
        sa.Column('has_intro_reading', sa.Boolean(), nullable=False),
        sa.Column('has_final_reading', sa.Boolean(), nullable=False),
        sa.Column('has_music', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('people',
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('pulpit', sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    with op.batch_alter_table('people', schema=None) as batch_op:
        batch_op.create_index('idx_person_pulpit', ['pulpit'], unique=False)

    op.create_table('music_items',
        sa.Column('category', sa.String(length=10), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('duration_seconds', sa.Integer(), nullable=False),
        *_base_columns(),
        sa.CheckConstraint("category IN ('hymn', 'chorus')", name='ck_music_item_category'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category', 'number', name='uq_music_item_number')
    )

    op.create_table('holidays',
        sa.Column('holiday_date', sa.Date(), nullable=False),
        sa.Column('kind', sa.String(length=30), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('holiday_date')
    )
    with op.batch_alter_table('holidays', schema=None) as batch_op:
        batch_op.create_index('idx_holiday_kind_date', ['kind', 'holiday_date'], unique=False)

    op.create_table('weekly_rules',
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('service_type_id', sa.CHAR(length=32), nullable=False),
        sa.Column('default_start_time', sa.Time(), nullable=False),
        sa.Column('holiday_adjustable', sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_weekly_rule_day_range'),
        sa.ForeignKeyConstraint(['service_type_id'], ['service_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('day_of_week', name='uq_weekly_rule_day')
    )

    op.create_table('services',
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('service_type_id', sa.CHAR(length=32), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_holiday', sa.Boolean(), nullable=False),
        sa.Column('holiday_adjusted', sa.Boolean(), nullable=False),
        sa.Column('intro_user_id', sa.CHAR(length=32), nullable=True),
        sa.Column('teaching_user_id', sa.CHAR(length=32), nullable=True),
        sa.Column('finalization_user_id', sa.CHAR(length=32), nullable=True),
        sa.Column('testimonies_user_id', sa.CHAR(length=32), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
        sa.Column('early_start_time', sa.Time(), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(['service_type_id'], ['service_types.id']),
        sa.ForeignKeyConstraint(['intro_user_id'], ['people.id']),
        sa.ForeignKeyConstraint(['teaching_user_id'], ['people.id']),
        sa.ForeignKeyConstraint(['finalization_user_id'], ['people.id']),
        sa.ForeignKeyConstraint(['testimonies_user_id'], ['people.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('services', schema=None) as batch_op:
        batch_op.create_index('idx_service_date', ['service_date'], unique=False)
        batch_op.create_index('idx_service_date_type', ['service_date', 'service_type_id'], unique=False)
        batch_op.create_index('idx_service_intro', ['intro_user_id'], unique=False)
        batch_op.create_index('idx_service_teaching', ['teaching_user_id'], unique=False)
        batch_op.create_index('idx_service_finalization', ['finalization_user_id'], unique=False)
        batch_op.create_index('idx_service_testimonies', ['testimonies_user_id'], unique=False)

    op.create_table('month_generations',
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('services_created', sa.Integer(), nullable=False),
        sa.Column('generated_by', sa.String(length=64), nullable=True),
        sa.Column('generated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('year', 'month')
    )

    op.create_table('readings',
        sa.Column('service_id', sa.CHAR(length=32), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=False),
        sa.Column('book', sa.String(length=60), nullable=False),
        sa.Column('chapter_start', sa.Integer(), nullable=False),
        sa.Column('verse_start', sa.Integer(), nullable=False),
        sa.Column('chapter_end', sa.Integer(), nullable=False),
        sa.Column('verse_end', sa.Integer(), nullable=False),
        sa.Column('reader_id', sa.CHAR(length=32), nullable=False),
        sa.Column('is_repeat', sa.Boolean(), nullable=False),
        sa.Column('original_reading_id', sa.CHAR(length=32), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reader_id'], ['people.id']),
        sa.ForeignKeyConstraint(['original_reading_id'], ['readings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('service_id', 'role', name='uq_reading_service_role')
    )
    with op.batch_alter_table('readings', schema=None) as batch_op:
        batch_op.create_index(
            'idx_reading_passage',
            ['book', 'chapter_start', 'verse_start', 'chapter_end', 'verse_end'],
            unique=False,
        )
        batch_op.create_index('idx_reading_reader', ['reader_id'], unique=False)

    op.create_table('playlist_entries',
        sa.Column('service_id', sa.CHAR(length=32), nullable=False),
        sa.Column('category', sa.String(length=10), nullable=False),
        sa.Column('item_id', sa.CHAR(length=32), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['item_id'], ['music_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('service_id', 'category', 'item_id', name='uq_playlist_item')
    )
    with op.batch_alter_table('playlist_entries', schema=None) as batch_op:
        batch_op.create_index('idx_playlist_order', ['service_id', 'category', 'order_index'], unique=False)

    op.create_table('activity_log',
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('kind', sa.String(length=40), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('service_id', sa.CHAR(length=32), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('activity_log', schema=None) as batch_op:
        batch_op.create_index('idx_activity_kind', ['kind'], unique=False)
        batch_op.create_index('idx_activity_created', ['created_at'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('activity_log', schema=None) as batch_op:
        batch_op.drop_index('idx_activity_created')
        batch_op.drop_index('idx_activity_kind')
    op.drop_table('activity_log')

    with op.batch_alter_table('playlist_entries', schema=None) as batch_op:
        batch_op.drop_index('idx_playlist_order')
    op.drop_table('playlist_entries')

    with op.batch_alter_table('readings', schema=None) as batch_op:
        batch_op.drop_index('idx_reading_reader')
        batch_op.drop_index('idx_reading_passage')
    op.drop_table('readings')

    op.drop_table('month_generations')

    with op.batch_alter_table('services', schema=None) as batch_op:
        batch_op.drop_index('idx_service_testimonies')
        batch_op.drop_index('idx_service_finalization')
        batch_op.drop_index('idx_service_teaching')
        batch_op.drop_index('idx_service_intro')
        batch_op.drop_index('idx_service_date_type')
        batch_op.drop_index('idx_service_date')
    op.drop_table('services')

    op.drop_table('weekly_rules')

    with op.batch_alter_table('holidays', schema=None) as batch_op:
        batch_op.drop_index('idx_holiday_kind_date')
    op.drop_table('holidays')

    op.drop_table('music_items')

    with op.batch_alter_table('people', schema=None) as batch_op:
        batch_op.drop_index('idx_person_pulpit')
    op.drop_table('people')

    op.drop_table('service_types')
