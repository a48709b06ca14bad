"""Initial herd tracking schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-01-13

Creates animals, animal_locations, current_locations, device_commands,
alerts, virtual_fences and device_controls. Each table is only created if it
does not exist yet, so databases created earlier with create_all upgrade cleanly.
"""
import logging

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

logger = logging.getLogger(__name__)


def _create_if_missing(tables, name, *columns, indexes=()):
    if name in tables:
        logger.info(f"{name} table already exists, skipping creation")
        return
    op.create_table(name, *columns)
    for index_name, index_columns, unique in indexes:
        op.create_index(index_name, name, index_columns, unique=unique)
    logger.info(f"Created {name} table")


def upgrade() -> None:
    connection = op.get_bind()
    inspector = sa.inspect(connection)
    tables = inspector.get_table_names()

    _create_if_missing(
        tables,
        'animals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('farm_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('tag_number', sa.String(length=100), nullable=False),
        sa.Column('breed', sa.String(length=100), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_animals_id', ['id'], False),
            ('ix_animals_farm_id', ['farm_id'], False),
            ('ix_animals_tag_number', ['tag_number'], True),
        ),
    )

    _create_if_missing(
        tables,
        'animal_locations',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('animal_id', sa.Integer(), nullable=True),
        sa.Column('collar_id', sa.Integer(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('altitude_meters', sa.Float(), nullable=True),
        sa.Column('accuracy_meters', sa.Float(), nullable=True),
        sa.Column('speed_kmh', sa.Float(), nullable=True),
        sa.Column('heading_degrees', sa.Float(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('battery_level', sa.Float(), nullable=True),
        sa.Column('signal_quality', sa.Float(), nullable=True),
        sa.Column('temperature_celsius', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_animal_locations_id', ['id'], False),
            ('ix_animal_locations_animal_id', ['animal_id'], False),
            ('ix_animal_locations_collar_id', ['collar_id'], False),
            ('idx_animal_locations_animal_recorded', ['animal_id', 'recorded_at'], False),
            ('idx_animal_locations_collar_recorded', ['collar_id', 'recorded_at'], False),
        ),
    )

    _create_if_missing(
        tables,
        'current_locations',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('entity_key', sa.String(length=64), nullable=False),
        sa.Column('animal_id', sa.Integer(), nullable=True),
        sa.Column('collar_id', sa.Integer(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('battery_level', sa.Float(), nullable=True),
        sa.Column('signal_quality', sa.Float(), nullable=True),
        sa.Column('temperature_celsius', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_current_locations_entity_key', ['entity_key'], True),
            ('ix_current_locations_animal_id', ['animal_id'], False),
            ('ix_current_locations_collar_id', ['collar_id'], False),
        ),
    )

    _create_if_missing(
        tables,
        'device_commands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_id', sa.String(length=128), nullable=False),
        sa.Column('command_type', sa.String(length=32), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('ack_status', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('acknowledged_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_device_commands_id', ['id'], False),
            ('ix_device_commands_device_id', ['device_id'], False),
            ('idx_device_commands_device_status', ['device_id', 'status'], False),
            ('idx_device_commands_expires_at', ['expires_at'], False),
        ),
    )

    _create_if_missing(
        tables,
        'alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('farm_id', sa.Integer(), nullable=False),
        sa.Column('animal_id', sa.Integer(), nullable=True),
        sa.Column('collar_id', sa.Integer(), nullable=True),
        sa.Column('fence_id', sa.Integer(), nullable=True),
        sa.Column('alert_type', sa.String(length=100), nullable=False),
        sa.Column('severity', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('alert_data', sa.Text(), nullable=True),
        sa.Column('location_latitude', sa.Float(), nullable=True),
        sa.Column('location_longitude', sa.Float(), nullable=True),
        sa.Column('triggered_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('auto_generated', sa.Boolean(), nullable=False),
        sa.Column('acknowledged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('acknowledged_by', sa.Integer(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_alerts_id', ['id'], False),
            ('ix_alerts_farm_id', ['farm_id'], False),
            ('ix_alerts_animal_id', ['animal_id'], False),
            ('ix_alerts_status', ['status'], False),
            ('idx_alerts_farm_triggered', ['farm_id', 'triggered_at'], False),
        ),
    )

    _create_if_missing(
        tables,
        'virtual_fences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('farm_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('center_latitude', sa.Float(), nullable=False),
        sa.Column('center_longitude', sa.Float(), nullable=False),
        sa.Column('radius_meters', sa.Float(), nullable=False),
        sa.Column('fence_type', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_virtual_fences_id', ['id'], False),
            ('ix_virtual_fences_farm_id', ['farm_id'], False),
        ),
    )

    _create_if_missing(
        tables,
        'device_controls',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('control_key', sa.String(length=128), nullable=False),
        sa.Column('control_value', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        indexes=(
            ('ix_device_controls_control_key', ['control_key'], True),
        ),
    )


def downgrade() -> None:
    connection = op.get_bind()
    inspector = sa.inspect(connection)
    tables = inspector.get_table_names()

    for name in (
        'device_controls',
        'virtual_fences',
        'alerts',
        'device_commands',
        'current_locations',
        'animal_locations',
        'animals',
    ):
        if name in tables:
            op.drop_table(name)
            logger.info(f"Dropped {name} table")
