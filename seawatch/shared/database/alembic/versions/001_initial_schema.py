"""Initial schema: sync checkpoints and decoded event log

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def upgrade() -> None:
    op.create_table(
        'sync_state',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_sync_state'),
        sa.UniqueConstraint('name', name='uix_sync_state_name')
    )

    op.create_table(
        'event_log',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('tx_hash', sa.Text(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('event', sa.Text(), nullable=False),
        sa.Column('event_args', sa.Text(), nullable=False, comment='JSON encoded attribute map'),
        sa.Column('contract', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_event_log'),
        sa.UniqueConstraint('tx_hash', 'log_index', name='uix_event_log_tx_log'),
        sa.Index('idx_event_log_contract_block', 'contract', 'block_number')
    )

def downgrade() -> None:
    op.drop_table('event_log')
    op.drop_table('sync_state')
