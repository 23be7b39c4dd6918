import json
from typing import Any
from pydantic import (
    BaseModel,
    Field,
    model_validator,
    field_validator,
    ConfigDict
)


class ChainLog(BaseModel):
    """
    Normalized ledger log entry.

    Produced by the chain client from raw provider output. Hex values are
    0x-prefixed lower-case strings, the emitting address is checksummed.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "address": "0x0000000000000068F116a894984e2DB1123eB395",
                "topics": [
                    "0x6bacc01dbe442496068f7d234edd811f1a5f833243e0aec824f86ab861f3c90d",
                    "0x000000000000000000000000a0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
                ],
                "data": "0x",
                "block_number": 17000000,
                "tx_hash": "0x5f4a2c7c2b1e5b0f3c5f7d2c9e3b1a0f9e8d7c6b5a4f3e2d1c0b9a8f7e6d5c4b",
                "log_index": 12
            }
        }
    )

    address: str = Field(..., description="Emitting contract address (checksummed)")
    topics: tuple[str, ...] = Field(default=(), description="Log topics, topic-0 is the event signature hash")
    data: str = Field(default="0x", description="ABI-encoded non-indexed parameters")
    block_number: int = Field(..., ge=0)
    tx_hash: str = Field(..., min_length=66, max_length=66)
    log_index: int = Field(..., ge=0)

    @field_validator('topics', mode='before')
    @classmethod
    def normalize_topics(cls, v: Any) -> tuple[str, ...]:
        return tuple(str(t).lower() for t in v or ())

    @field_validator('tx_hash', 'data')
    @classmethod
    def normalize_hex(cls, v: str) -> str:
        if not v.startswith("0x"):
            raise ValueError(f"Expected 0x-prefixed hex string, got '{v[:10]}'")
        return v.lower()

    @property
    def signature(self) -> str:
        """Topic-0 of the log, empty for anonymous or malformed logs"""
        return self.topics[0] if self.topics else ""

    def __str__(self) -> str:
        return f"{self.tx_hash}:{self.log_index}@{self.block_number}"


class BlockRange(BaseModel):
    """Inclusive block range scanned by one replay pass"""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    @model_validator(mode='after')
    def validate_bounds(self) -> 'BlockRange':
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after end {self.end}")
        return self

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


class EventRecordModel(BaseModel):
    """
    Canonical, immutable record of one decoded event.

    (tx_hash, log_index) identifies the record; storing it twice yields one row.
    """

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    log_index: int = Field(..., ge=0)
    block_number: int = Field(..., ge=0)
    event_name: str
    attributes: dict[str, str]
    contract_address: str

    @classmethod
    def from_log(cls, log: ChainLog, event_name: str, attributes: dict[str, str]) -> 'EventRecordModel':
        """Build a record from a log, injecting the topic-0 signature attribute"""
        return cls(
            tx_hash=log.tx_hash,
            log_index=log.log_index,
            block_number=log.block_number,
            event_name=event_name,
            attributes={**attributes, "signature": log.signature},
            contract_address=log.address
        )

    def serialize_attributes(self) -> str:
        """Stable JSON encoding of the attribute map"""
        return json.dumps(self.attributes, sort_keys=True, separators=(",", ":"))


class CheckpointModel(BaseModel):
    """Last fully processed block for a synchronization key"""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    block_number: int = Field(..., ge=0)
