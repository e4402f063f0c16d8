"""add_fleet_alerting_tables

Revision ID: b4e1c7a9d2f3
Revises:
Create Date: 2026-10-19 10:00:00.000000

Trucks, maintenance records, users, fleet settings and the notifications feed.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'b4e1c7a9d2f3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'trucks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vin', sa.String(17), nullable=False),
        sa.Column('license_plate', sa.String(20), nullable=False),
        sa.Column('make', sa.String(50), nullable=False),
        sa.Column('model', sa.String(50), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('current_mileage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'status',
            sa.Enum('ACTIVE', 'INACTIVE', 'MAINTENANCE', name='truckstatus'),
            nullable=False,
        ),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_trucks')),
        sa.UniqueConstraint('vin', name=op.f('uq_trucks_vin')),
    )

    op.create_table(
        'maintenance_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('truck_id', sa.Integer(), nullable=False),
        sa.Column('service_type', sa.String(100), nullable=False),
        sa.Column('category', sa.String(40), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_performed', sa.DateTime(), nullable=False),
        sa.Column('current_mileage', sa.Integer(), nullable=True),
        sa.Column('parts_cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('labor_cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('performed_by', sa.String(100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_maintenance_records')),
        sa.ForeignKeyConstraint(
            ['truck_id'], ['trucks.id'],
            name=op.f('fk_maintenance_records_truck_id_trucks'),
            ondelete='CASCADE',
        ),
    )
    op.create_index(
        'ix_maintenance_records_truck_date', 'maintenance_records', ['truck_id', 'date_performed'],
    )
    op.create_index('ix_maintenance_records_date', 'maintenance_records', ['date_performed'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('role', sa.Enum('ADMIN', 'MANAGER', 'USER', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name=op.f('uq_users_email')),
    )

    op.create_table(
        'fleet_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(100), nullable=True),
        sa.Column('maintenance_intervals', sa.JSON(), nullable=True),
        sa.Column('notifications', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_fleet_settings')),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(
            'type',
            sa.Enum('upcoming_maintenance', 'overdue', 'alert', name='notificationtype'),
            nullable=False,
        ),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.String(1000), nullable=False),
        sa.Column('truck_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('dedup_key', sa.String(400), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_notifications')),
        sa.ForeignKeyConstraint(
            ['truck_id'], ['trucks.id'],
            name=op.f('fk_notifications_truck_id_trucks'),
            ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_notifications_user_id_users'),
            ondelete='SET NULL',
        ),
        sa.UniqueConstraint('dedup_key', name=op.f('uq_notifications_dedup_key')),
    )
    op.create_index(
        'ix_notifications_lookup', 'notifications', ['type', 'title', 'truck_id', 'created_at'],
    )
    op.create_index('ix_notifications_created', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_notifications_created', table_name='notifications')
    op.drop_index('ix_notifications_lookup', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('fleet_settings')
    op.drop_table('users')
    op.drop_index('ix_maintenance_records_date', table_name='maintenance_records')
    op.drop_index('ix_maintenance_records_truck_date', table_name='maintenance_records')
    op.drop_table('maintenance_records')
    op.drop_table('trucks')
    sa.Enum(name='notificationtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='truckstatus').drop(op.get_bind(), checkfirst=True)
