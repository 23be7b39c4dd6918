from datetime import datetime
from sqlalchemy import BigInteger, DateTime, Index, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
Identifier = BigInteger().with_variant(Integer, "sqlite")

class SyncState(Base):
    """
    Synchronization checkpoint per source key.
    block_number is the highest block whose events were fully processed.
    """
    __tablename__ = 'sync_state'

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint('name', name='uix_sync_state_name'),
    )

    def __repr__(self) -> str:
        return f"SyncState(name='{self.name}', block_number={self.block_number})"

class EventLog(Base):
    """
    Decoded contract event, written once and never updated.
    (tx_hash, log_index) is unique so replays cannot duplicate rows.
    """
    __tablename__ = 'event_log'

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    tx_hash: Mapped[str] = mapped_column(Text, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event: Mapped[str] = mapped_column(Text, nullable=False)
    event_args: Mapped[str] = mapped_column(Text, nullable=False, comment='JSON encoded attribute map')
    contract: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint('tx_hash', 'log_index', name='uix_event_log_tx_log'),
        Index('idx_event_log_contract_block', 'contract', 'block_number'),
    )

    def __repr__(self) -> str:
        return f"EventLog(event='{self.event}', tx_hash='{self.tx_hash}', log_index={self.log_index})"
