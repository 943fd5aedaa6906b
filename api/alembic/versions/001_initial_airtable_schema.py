"""initial_airtable_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

Catalogo (bases, tablas, tickets, usuarios), historial de revisiones crudo y
parseado, y operadores del sistema. Cada tabla se crea solo si no existe: los
jobs de sync tambien crean las suyas con CREATE TABLE IF NOT EXISTS.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


REVISION_TABLES = ('raw_revision_history', 'parsed_revision_history')


def _synced_at() -> sa.Column:
    return sa.Column('synced_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('airtable_bases'):
        op.create_table('airtable_bases',
        sa.Column('airtable_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('catalog_position', sa.Integer(), server_default='0', nullable=False),
        _synced_at(),
        sa.PrimaryKeyConstraint('airtable_id')
        )

    if not inspector.has_table('airtable_tables'):
        op.create_table('airtable_tables',
        sa.Column('airtable_id', sa.Text(), nullable=False),
        sa.Column('base_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('fields', postgresql.JSONB(), nullable=True),
        sa.Column('catalog_position', sa.Integer(), server_default='0', nullable=False),
        _synced_at(),
        sa.PrimaryKeyConstraint('airtable_id')
        )
        op.create_index(op.f('ix_airtable_tables_base_id'), 'airtable_tables', ['base_id'], unique=False)

    if not inspector.has_table('tickets'):
        op.create_table('tickets',
        sa.Column('airtable_record_id', sa.Text(), nullable=False),
        sa.Column('base_id', sa.Text(), nullable=False),
        sa.Column('table_id', sa.Text(), nullable=False),
        sa.Column('ticket_id', sa.Text(), nullable=True),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=True),
        sa.Column('assigned_to', postgresql.JSONB(), nullable=True),
        sa.Column('created_time', sa.DateTime(timezone=True), nullable=True),
        _synced_at(),
        sa.PrimaryKeyConstraint('airtable_record_id')
        )

    if not inspector.has_table('airtable_users'):
        op.create_table('airtable_users',
        sa.Column('airtable_record_id', sa.Text(), nullable=False),
        sa.Column('base_id', sa.Text(), nullable=False),
        sa.Column('table_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('tickets', postgresql.JSONB(), nullable=True),
        sa.Column('created_time', sa.DateTime(timezone=True), nullable=True),
        _synced_at(),
        sa.PrimaryKeyConstraint('airtable_record_id')
        )

    for table in REVISION_TABLES:
        if inspector.has_table(table):
            continue
        op.create_table(table,
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('record_id', sa.Text(), nullable=False),
        sa.Column('base_id', sa.Text(), nullable=False),
        sa.Column('table_id', sa.Text(), nullable=False),
        sa.Column('table_name', sa.Text(), nullable=False),
        sa.Column('revision_data', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('record_id', 'base_id', 'table_id', name=f'uq_{table}_key')
        )
        op.create_index(f'ix_{table}_record_id', table, ['record_id'], unique=False)

    if not inspector.has_table('system_users'):
        op.create_table('system_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('airtable_user_id', sa.String(length=64), nullable=True),
        sa.Column('airtable_email', sa.String(length=255), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_system_users_id'), 'system_users', ['id'], unique=False)
        op.create_index(op.f('ix_system_users_airtable_user_id'), 'system_users', ['airtable_user_id'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('system_users', *REVISION_TABLES, 'airtable_users', 'tickets', 'airtable_tables', 'airtable_bases'):
        if inspector.has_table(table):
            op.drop_table(table)
