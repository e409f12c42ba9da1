"""initial_schema

Revision ID: 3c9a1f0d2b7e
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9a1f0d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False, comment='Category name'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_categories_name'), 'categories', ['name'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False, comment='Unique display name'),
        sa.Column('email', sa.String(length=255), nullable=False, comment="User's email address"),
        sa.Column('hashed_password', sa.String(length=255), nullable=True, comment='Bcrypt hashed password'),
        sa.Column('picture', sa.String(length=255), nullable=True, comment='Stored file name of the profile picture'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the user registered'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('author', sa.String(length=255), nullable=True, comment='Author name'),
        sa.Column('publish_year', sa.Integer(), nullable=True, comment='Year of publication'),
        sa.Column('description', sa.Text(), nullable=True, comment='Book description'),
        sa.Column('summary', sa.Text(), nullable=True, comment='Short summary'),
        sa.Column('book_photo', sa.String(length=255), nullable=True, comment='Stored file name of the cover image'),
        sa.Column('html_content', sa.String(length=255), nullable=True, comment='Stored file name of the HTML edition'),
        sa.Column('review_count', sa.Integer(), server_default='0', nullable=False, comment='Number of reviews for this book'),
        sa.Column('average_rating', sa.Numeric(precision=3, scale=2), nullable=True, comment='Average review rating, null if no reviews'),
        sa.Column('added_to_list_count', sa.Integer(), server_default='0', nullable=False, comment='Lifetime number of times the book was added to a reading list'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('review_count >= 0', name='ck_book_review_count_non_negative'),
        sa.CheckConstraint('added_to_list_count >= 0', name='ck_book_added_to_list_count_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_author'), 'books', ['author'], unique=False)
    op.create_index(op.f('ix_books_publish_year'), 'books', ['publish_year'], unique=False)
    op.create_index(op.f('ix_books_review_count'), 'books', ['review_count'], unique=False)
    op.create_index(op.f('ix_books_average_rating'), 'books', ['average_rating'], unique=False)
    op.create_index(op.f('ix_books_added_to_list_count'), 'books', ['added_to_list_count'], unique=False)

    op.create_table(
        'book_categories',
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('book_id', 'category_id'),
        comment='Association table linking books to their categories',
    )

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False, comment='Rating from 0-5 stars'),
        sa.Column('comment', sa.Text(), nullable=True, comment='Review text'),
        sa.Column('review_date', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_review_rating_range'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_review_user_book'),
    )
    op.create_index(op.f('ix_reviews_id'), 'reviews', ['id'], unique=False)
    op.create_index(op.f('ix_reviews_book_id'), 'reviews', ['book_id'], unique=False)
    op.create_index(op.f('ix_reviews_user_id'), 'reviews', ['user_id'], unique=False)

    op.create_table(
        'reading_list',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, comment='want_to_read, reading or completed'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True, comment='When the user started reading'),
        sa.Column('finish_date', sa.DateTime(timezone=True), nullable=True, comment='When the user finished reading'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'book_id'),
    )
    op.create_index(op.f('ix_reading_list_book_id'), 'reading_list', ['book_id'], unique=False)
    op.create_index(op.f('ix_reading_list_finish_date'), 'reading_list', ['finish_date'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_reading_list_finish_date'), table_name='reading_list')
    op.drop_index(op.f('ix_reading_list_book_id'), table_name='reading_list')
    op.drop_table('reading_list')

    op.drop_index(op.f('ix_reviews_user_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_book_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_id'), table_name='reviews')
    op.drop_table('reviews')

    op.drop_table('book_categories')

    op.drop_index(op.f('ix_books_added_to_list_count'), table_name='books')
    op.drop_index(op.f('ix_books_average_rating'), table_name='books')
    op.drop_index(op.f('ix_books_review_count'), table_name='books')
    op.drop_index(op.f('ix_books_publish_year'), table_name='books')
    op.drop_index(op.f('ix_books_author'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_table('books')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')

    op.drop_index(op.f('ix_categories_name'), table_name='categories')
    op.drop_table('categories')
