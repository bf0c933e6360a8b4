"""Initial schema

Revision ID: 001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('phone', sa.String(32)),
        sa.Column('phone_verified', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'airports',
        sa.Column('code', sa.String(3), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('timezone', sa.String(50)),
    )

    op.create_table(
        'flight_alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('origin_code', sa.String(3), sa.ForeignKey('airports.code'), nullable=False),
        sa.Column('destination_code', sa.String(3)),
        sa.Column('max_price', sa.Numeric(10, 2)),
        sa.Column('min_discount', sa.Integer()),
        sa.Column('departure_after', sa.DateTime()),
        sa.Column('departure_before', sa.DateTime()),
        sa.Column('destination_text', sa.Text()),
        sa.Column('timing_text', sa.Text()),
        sa.Column('price_text', sa.Text()),
        sa.Column('summary', sa.String(255)),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_flight_alerts_user_id', 'flight_alerts', ['user_id'])
    op.create_index('ix_flight_alerts_status', 'flight_alerts', ['status'])

    op.create_table(
        'price_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('origin', sa.String(3), nullable=False),
        sa.Column('destination', sa.String(3), nullable=False),
        sa.Column('travel_date', sa.DateTime(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('airline', sa.String(10)),
        sa.Column('recorded_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            'origin', 'destination', 'travel_date', 'price', 'airline', 'recorded_at',
            name='uix_price_observation',
        ),
    )
    op.create_index('ix_price_history_route_date', 'price_history', ['origin', 'destination', 'travel_date'])
    op.create_index('ix_price_history_recorded', 'price_history', ['recorded_at'])

    op.create_table(
        'flight_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('alert_id', sa.Integer(), sa.ForeignKey('flight_alerts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('flight_data', sa.JSON(), nullable=False),
        sa.Column('channel', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_flight_notifications_alert_id', 'flight_notifications', ['alert_id'])


def downgrade():
    op.drop_table('flight_notifications')
    op.drop_table('price_history')
    op.drop_table('flight_alerts')
    op.drop_table('airports')
    op.drop_table('users')
