"""Initial tour schema

Revision ID: 0001
Revises:
Create Date: 2026-01-12 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False))
    return columns


def _join_table(name: str, left: tuple[str, str], right: tuple[str, str], *extra, indexed=(True, True)) -> None:
    """Create a join table with a surrogate key, two cascading FKs and a pair uniqueness constraint."""
    (left_col, left_table), (right_col, right_table) = left, right
    op.create_table(name,
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(left_col, sa.Integer(), nullable=False),
        sa.Column(right_col, sa.Integer(), nullable=False),
        *extra,
        sa.ForeignKeyConstraint([left_col], [f'{left_table}.id'], name=f'fk_{name}_{left_col}_{left_table}', ondelete='CASCADE'),
        sa.ForeignKeyConstraint([right_col], [f'{right_table}.id'], name=f'fk_{name}_{right_col}_{right_table}', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    for column, wanted in zip((left_col, right_col), indexed):
        if wanted:
            op.create_index(op.f(f'ix_{name}_{column}'), name, [column], unique=False)


def upgrade() -> None:
    """Upgrade database schema."""
    # users and tours reference each other; users.current_tour_id gets its FK after tours exists
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('current_tour_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=False)

    op.create_table('tours',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('tour_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=64), nullable=True),
        sa.Column('neighborhood', sa.String(length=255), nullable=True),
        sa.Column('is_ordered', sa.Boolean(), nullable=False),
        sa.Column('rating_avg', sa.Float(), nullable=True),
        sa.Column('completions', sa.Integer(), nullable=False),
        sa.Column('total_waypoints', sa.Integer(), nullable=False),
        sa.Column('start_long', sa.Float(), nullable=True),
        sa.Column('start_lat', sa.Float(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('completions >= 0', name='ck_tour_completions_non_negative'),
        sa.CheckConstraint('total_waypoints >= 0', name='ck_tour_total_waypoints_non_negative'),
        sa.CheckConstraint('start_long IS NULL OR (start_long BETWEEN -180 AND 180)', name='ck_tour_start_long_range'),
        sa.CheckConstraint('start_lat IS NULL OR (start_lat BETWEEN -90 AND 90)', name='ck_tour_start_lat_range'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_tours_created_by_user_id_users', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_tours_created_by_user_id'), 'tours', ['created_by_user_id'], unique=False)
    op.create_index(op.f('ix_tours_tour_name'), 'tours', ['tour_name'], unique=False)

    with op.batch_alter_table('users') as batch_op:
        batch_op.create_foreign_key(
            'fk_users_current_tour_id_tours', 'tours',
            ['current_tour_id'], ['id'], ondelete='SET NULL',
        )

    op.create_table('waypoints',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('prompt', sa.Text(), nullable=True),
        sa.Column('answer', sa.String(length=255), nullable=True),
        sa.Column('long', sa.Float(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('rating_avg', sa.Float(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('long BETWEEN -180 AND 180', name='ck_waypoint_long_range'),
        sa.CheckConstraint('lat BETWEEN -90 AND 90', name='ck_waypoint_lat_range'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('icon', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category'),
    )

    for table, extra in (
        ('images', [
            sa.Column('thumbnail', sa.String(length=1024), nullable=True),
            sa.Column('large_img', sa.String(length=1024), nullable=True),
        ]),
        ('reviews', [
            sa.Column('feedback', sa.Text(), nullable=True),
            sa.Column('rating', sa.Integer(), nullable=False),
            sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_review_rating_range'),
        ]),
        ('chats', [
            sa.Column('message', sa.Text(), nullable=False),
        ]),
    ):
        op.create_table(table,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            *extra,
            *_timestamps(),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=f'fk_{table}_user_id_users', ondelete='RESTRICT'),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(op.f(f'ix_{table}_user_id'), table, ['user_id'], unique=False)

    # Join tables
    _join_table('users_waypoints', ('user_id', 'users'), ('waypoint_id', 'waypoints'),
                sa.Column('status', sa.String(length=32), nullable=True), *_timestamps(),
                sa.UniqueConstraint('user_id', 'waypoint_id', name='uq_users_waypoints_user_waypoint'))
    _join_table('images_waypoints', ('image_id', 'images'), ('waypoint_id', 'waypoints'),
                *_timestamps(updated=False),
                sa.UniqueConstraint('image_id', 'waypoint_id', name='uq_images_waypoints_image_waypoint'))
    _join_table('waypoints_categories', ('waypoint_id', 'waypoints'), ('category_id', 'categories'),
                sa.UniqueConstraint('waypoint_id', 'category_id', name='uq_waypoints_categories_waypoint_category'))
    _join_table('tours_waypoints', ('tour_id', 'tours'), ('waypoint_id', 'waypoints'),
                sa.Column('order', sa.Integer(), nullable=False),
                sa.CheckConstraint('"order" >= 0', name='ck_tours_waypoints_order_non_negative'),
                sa.UniqueConstraint('tour_id', 'waypoint_id', name='uq_tours_waypoints_tour_waypoint'),
                indexed=(False, True))
    op.create_index('ix_tours_waypoints_tour_id_order', 'tours_waypoints', ['tour_id', 'order'], unique=False)
    _join_table('completed_tours', ('tour_id', 'tours'), ('user_id', 'users'),
                *_timestamps(updated=False),
                sa.UniqueConstraint('user_id', 'tour_id', name='uq_completed_tours_user_tour'))
    _join_table('images_reviews', ('review_id', 'reviews'), ('image_id', 'images'),
                sa.UniqueConstraint('image_id', 'review_id', name='uq_images_reviews_image_review'))
    _join_table('images_tours', ('tour_id', 'tours'), ('image_id', 'images'),
                sa.UniqueConstraint('image_id', 'tour_id', name='uq_images_tours_image_tour'))
    _join_table('reviews_tours', ('review_id', 'reviews'), ('tour_id', 'tours'),
                sa.UniqueConstraint('review_id', 'tour_id', name='uq_reviews_tours_review_tour'))
    _join_table('reviews_waypoints', ('review_id', 'reviews'), ('waypoint_id', 'waypoints'),
                sa.UniqueConstraint('review_id', 'waypoint_id', name='uq_reviews_waypoints_review_waypoint'))
    _join_table('chats_tours', ('chat_id', 'chats'), ('tour_id', 'tours'),
                sa.UniqueConstraint('chat_id', 'tour_id', name='uq_chats_tours_chat_tour'))


def downgrade() -> None:
    """Downgrade database schema."""
    for table in (
        'chats_tours', 'reviews_waypoints', 'reviews_tours', 'images_tours', 'images_reviews',
        'completed_tours', 'tours_waypoints', 'waypoints_categories', 'images_waypoints', 'users_waypoints',
        'chats', 'reviews', 'images', 'categories', 'waypoints',
    ):
        op.drop_table(table)

    with op.batch_alter_table('users') as batch_op:
        batch_op.drop_constraint('fk_users_current_tour_id_tours', type_='foreignkey')
    op.drop_table('tours')
    op.drop_table('users')
