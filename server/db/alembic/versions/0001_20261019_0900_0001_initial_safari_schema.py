"""Initial safari marketplace schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('company_name', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(email) > 0', name='ck_user_email_not_empty'),
        sa.CheckConstraint('length(name) > 0', name='ck_user_name_not_empty'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Create parks table
    op.create_table('parks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=200), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('area_km2', sa.Float(), nullable=False),
        sa.Column('established_year', sa.Integer(), nullable=False),
        sa.Column('entry_fee_usd', sa.Integer(), nullable=False),
        sa.Column('best_time_to_visit', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('rating_average', sa.Float(), nullable=False),
        sa.Column('rating_count', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('latitude >= -90 AND latitude <= 90', name='ck_park_latitude_range'),
        sa.CheckConstraint('longitude >= -180 AND longitude <= 180', name='ck_park_longitude_range'),
        sa.CheckConstraint('area_km2 >= 0', name='ck_park_area_non_negative'),
        sa.CheckConstraint('established_year >= 1800', name='ck_park_established_year_min'),
        sa.CheckConstraint('entry_fee_usd >= 0', name='ck_park_entry_fee_non_negative'),
        sa.CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='ck_park_rating_average_range'),
        sa.CheckConstraint('rating_count >= 0', name='ck_park_rating_count_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_parks_name'), 'parks', ['name'], unique=False)

    # Create lodges table
    op.create_table('lodges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('park_id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=False),
        sa.Column('lodge_type', sa.String(length=20), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=32), nullable=True),
        sa.Column('price_per_night_amount', sa.Integer(), nullable=False),
        sa.Column('price_per_night_currency', sa.String(length=3), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('rating_average', sa.Float(), nullable=False),
        sa.Column('rating_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('capacity >= 1', name='ck_lodge_capacity_positive'),
        sa.CheckConstraint('price_per_night_amount >= 0', name='ck_lodge_price_non_negative'),
        sa.CheckConstraint('length(price_per_night_currency) = 3', name='ck_lodge_price_currency_length'),
        sa.CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='ck_lodge_rating_average_range'),
        sa.ForeignKeyConstraint(['park_id'], ['parks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_lodges_name'), 'lodges', ['name'], unique=False)
    op.create_index(op.f('ix_lodges_park_id'), 'lodges', ['park_id'], unique=False)
    op.create_index(op.f('ix_lodges_owner_id'), 'lodges', ['owner_id'], unique=False)

    # Create tours table
    op.create_table('tours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('park_id', sa.Uuid(), nullable=False),
        sa.Column('agency_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('difficulty_level', sa.String(length=20), nullable=False),
        sa.Column('cancellation_policy', sa.String(length=500), nullable=False),
        sa.Column('price_amount', sa.Integer(), nullable=False),
        sa.Column('price_currency', sa.String(length=3), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('current_participants', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('rating_average', sa.Float(), nullable=False),
        sa.Column('rating_count', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('duration_days >= 1 AND duration_days <= 30', name='ck_tour_duration_range'),
        sa.CheckConstraint('max_participants >= 1 AND max_participants <= 50', name='ck_tour_max_participants_range'),
        sa.CheckConstraint('current_participants >= 0', name='ck_tour_current_participants_non_negative'),
        sa.CheckConstraint('current_participants <= max_participants', name='ck_tour_current_participants_lte_max'),
        sa.CheckConstraint('price_amount >= 0', name='ck_tour_price_amount_non_negative'),
        sa.CheckConstraint('length(price_currency) = 3', name='ck_tour_price_currency_length'),
        sa.CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='ck_tour_rating_average_range'),
        sa.CheckConstraint('rating_count >= 0', name='ck_tour_rating_count_non_negative'),
        sa.ForeignKeyConstraint(['park_id'], ['parks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['agency_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tours_title'), 'tours', ['title'], unique=False)
    op.create_index(op.f('ix_tours_park_id'), 'tours', ['park_id'], unique=False)
    op.create_index(op.f('ix_tours_agency_id'), 'tours', ['agency_id'], unique=False)

    # Create tour_start_dates table
    op.create_table('tour_start_dates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('available_spots', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('available_spots >= 0', name='ck_tour_start_date_spots_non_negative'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tour_id', 'start_date', name='uq_tour_start_date_day')
    )
    op.create_index(op.f('ix_tour_start_dates_tour_id'), 'tour_start_dates', ['tour_id'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('adults', sa.Integer(), nullable=False),
        sa.Column('children', sa.Integer(), nullable=False),
        sa.Column('infants', sa.Integer(), nullable=False),
        sa.Column('total_participants', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_price_amount', sa.Integer(), nullable=False),
        sa.Column('total_price_currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('special_requests', sa.String(length=500), nullable=True),
        sa.Column('emergency_contact_name', sa.String(length=100), nullable=False),
        sa.Column('emergency_contact_phone', sa.String(length=32), nullable=False),
        sa.Column('emergency_contact_relationship', sa.String(length=50), nullable=False),
        sa.Column('cancellation_reason', sa.String(length=500), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refund_amount', sa.Integer(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('adults >= 1 AND adults <= 20', name='ck_booking_adults_range'),
        sa.CheckConstraint('children >= 0 AND children <= 20', name='ck_booking_children_range'),
        sa.CheckConstraint('infants >= 0 AND infants <= 10', name='ck_booking_infants_range'),
        sa.CheckConstraint('total_participants = adults + children + infants', name='ck_booking_total_participants_sum'),
        sa.CheckConstraint('end_date >= start_date', name='ck_booking_end_after_start'),
        sa.CheckConstraint('total_price_amount >= 0', name='ck_booking_total_price_non_negative'),
        sa.CheckConstraint('refund_amount IS NULL OR refund_amount >= 0', name='ck_booking_refund_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_tour_id'), 'bookings', ['tour_id'], unique=False)
    op.create_index(op.f('ix_bookings_start_date'), 'bookings', ['start_date'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)

    # Create reviews table
    op.create_table('reviews',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('overall', sa.Integer(), nullable=False),
        sa.Column('guide', sa.Integer(), nullable=True),
        sa.Column('accommodation', sa.Integer(), nullable=True),
        sa.Column('food', sa.Integer(), nullable=True),
        sa.Column('value', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('comment', sa.String(length=1000), nullable=False),
        sa.Column('pros', sa.JSON(), nullable=False),
        sa.Column('cons', sa.JSON(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('helpful_count', sa.Integer(), nullable=False),
        sa.Column('response_text', sa.String(length=500), nullable=True),
        sa.Column('responded_by', sa.Uuid(), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('overall >= 1 AND overall <= 5', name='ck_review_overall_range'),
        sa.CheckConstraint('guide IS NULL OR (guide >= 1 AND guide <= 5)', name='ck_review_guide_range'),
        sa.CheckConstraint(
            'accommodation IS NULL OR (accommodation >= 1 AND accommodation <= 5)',
            name='ck_review_accommodation_range'
        ),
        sa.CheckConstraint('food IS NULL OR (food >= 1 AND food <= 5)', name='ck_review_food_range'),
        sa.CheckConstraint('value IS NULL OR (value >= 1 AND value <= 5)', name='ck_review_value_range'),
        sa.CheckConstraint('helpful_count >= 0', name='ck_review_helpful_count_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['responded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'tour_id', 'booking_id', name='uq_review_user_tour_booking')
    )
    op.create_index(op.f('ix_reviews_user_id'), 'reviews', ['user_id'], unique=False)
    op.create_index(op.f('ix_reviews_tour_id'), 'reviews', ['tour_id'], unique=False)
    op.create_index(op.f('ix_reviews_booking_id'), 'reviews', ['booking_id'], unique=False)
    op.create_index(op.f('ix_reviews_created_at'), 'reviews', ['created_at'], unique=False)

    # Create review_helpful_votes table
    op.create_table('review_helpful_votes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('review_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['review_id'], ['reviews.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('review_id', 'user_id', name='uq_review_helpful_vote')
    )
    op.create_index(op.f('ix_review_helpful_votes_review_id'), 'review_helpful_votes', ['review_id'], unique=False)

    # Create capacity_ledger_entries table
    op.create_table('capacity_ledger_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('actor', sa.String(length=255), nullable=False),
        sa.Column('participants_before', sa.Integer(), nullable=False),
        sa.Column('participants_after', sa.Integer(), nullable=False),
        sa.Column('available_spots_before', sa.Integer(), nullable=True),
        sa.Column('available_spots_after', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(actor) > 0', name='ck_capacity_ledger_actor_not_empty'),
        sa.CheckConstraint('participants_before >= 0', name='ck_capacity_ledger_participants_before_non_negative'),
        sa.CheckConstraint('participants_after >= 0', name='ck_capacity_ledger_participants_after_non_negative'),
        sa.CheckConstraint(
            'available_spots_after IS NULL OR available_spots_after >= 0',
            name='ck_capacity_ledger_spots_after_non_negative'
        ),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_capacity_ledger_entries_tour_id'), 'capacity_ledger_entries', ['tour_id'], unique=False)
    op.create_index(
        op.f('ix_capacity_ledger_entries_booking_id'), 'capacity_ledger_entries', ['booking_id'], unique=False
    )
    op.create_index(
        op.f('ix_capacity_ledger_entries_created_at'), 'capacity_ledger_entries', ['created_at'], unique=False
    )

    # Create idempotency_records table
    op.create_table('idempotency_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('method', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('request_body_hash', sa.String(length=64), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(idempotency_key) > 0', name='ck_idempotency_key_not_empty'),
        sa.CheckConstraint('length(request_body_hash) = 64', name='ck_idempotency_hash_length'),
        sa.CheckConstraint(
            'response_status_code >= 100 AND response_status_code <= 599',
            name='ck_idempotency_status_code_valid'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key', 'method', 'user_id', name='uq_idempotency_key_method_user')
    )
    op.create_index(op.f('ix_idempotency_records_idempotency_key'), 'idempotency_records', ['idempotency_key'], unique=False)
    op.create_index(op.f('ix_idempotency_records_expires_at'), 'idempotency_records', ['expires_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('idempotency_records')
    op.drop_table('capacity_ledger_entries')
    op.drop_table('review_helpful_votes')
    op.drop_table('reviews')
    op.drop_table('bookings')
    op.drop_table('tour_start_dates')
    op.drop_table('tours')
    op.drop_table('lodges')
    op.drop_table('parks')
    op.drop_table('users')
