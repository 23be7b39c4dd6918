from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Iterator, NamedTuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from seawatch.shared.core.enums import EventName
from seawatch.shared.core.exceptions import DecodeError
from seawatch.shared.core.models import ChainLog

AttributeBuilder = Callable[[dict[str, Any]], dict[str, str]]

# Seaport struct encodings
SPENT_ITEM = "(uint8,address,uint256,uint256)"
RECEIVED_ITEM = "(uint8,address,uint256,uint256,address)"
OFFER_ITEM = "(uint8,address,uint256,uint256,uint256)"
CONSIDERATION_ITEM = "(uint8,address,uint256,uint256,uint256,address)"
ORDER_PARAMETERS = (
    f"(address,address,{OFFER_ITEM}[],{CONSIDERATION_ITEM}[],"
    "uint8,uint256,uint256,bytes32,uint256,bytes32,uint256)"
)


def hex32(value: bytes) -> str:
    return "0x" + value.hex()


class EventInput(NamedTuple):
    name: str
    abi_type: str
    indexed: bool = False


@dataclass(frozen=True)
class EventDefinition:
    """
    ABI description of one tracked event and how its payload maps to attributes.

    Inputs are listed in declaration order; indexed ones are read from
    topics[1:], the rest from the log data.
    """
    name: str
    inputs: tuple[EventInput, ...]
    build_attributes: AttributeBuilder = field(compare=False)

    @property
    def indexed(self) -> tuple[EventInput, ...]:
        return tuple(i for i in self.inputs if i.indexed)

    @property
    def params(self) -> tuple[EventInput, ...]:
        return tuple(i for i in self.inputs if not i.indexed)

    @property
    def signature_text(self) -> str:
        return f"{self.name}({','.join(i.abi_type for i in self.inputs)})"

    @cached_property
    def topic(self) -> str:
        """Topic-0 hash identifying this event"""
        return Web3.to_hex(Web3.keccak(text=self.signature_text))

    def decode(self, log: ChainLog) -> dict[str, str]:
        """
        Decode a log into this event's attribute set.

        Raises:
            DecodeError: If the topics or data do not match the definition.
        """
        if log.signature != self.topic:
            raise DecodeError(f"{log} is not a {self.name} log")
        if len(log.topics) != len(self.indexed) + 1:
            raise DecodeError(
                f"{self.name} expects {len(self.indexed)} indexed topics, got {len(log.topics) - 1}"
            )

        try:
            values: dict[str, Any] = {}
            for param, topic in zip(self.indexed, log.topics[1:]):
                values[param.name] = decode([param.abi_type], bytes.fromhex(topic[2:]))[0]

            decoded = decode([p.abi_type for p in self.params], bytes.fromhex(log.data[2:]))
            values.update(zip((p.name for p in self.params), decoded))

            return self.build_attributes(values)
        except (DecodingError, ValueError, TypeError, IndexError, KeyError) as e:
            raise DecodeError(f"Failed to decode {self.name} {log}: {e}") from e


class EventRegistry:
    """
    Table of tracked events keyed by topic-0.

    Iteration follows registration order.
    """

    def __init__(self):
        self._definitions: dict[str, EventDefinition] = {}

    def register(self, definition: EventDefinition) -> None:
        """Register an event definition"""
        if definition.topic in self._definitions:
            raise ValueError(f"Event already registered: {definition.signature_text}")
        self._definitions[definition.topic] = definition

    def get(self, topic: str) -> EventDefinition | None:
        return self._definitions.get(topic.lower())

    def __iter__(self) -> Iterator[EventDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


def _counter_incremented(v: dict[str, Any]) -> dict[str, str]:
    return {
        "newCounter": str(v["newCounter"]),
        "offerer": Web3.to_checksum_address(v["offerer"]),
    }


def _order_cancelled(v: dict[str, Any]) -> dict[str, str]:
    return {
        "orderHash": hex32(v["orderHash"]),
        "offerer": Web3.to_checksum_address(v["offerer"]),
        "zone": Web3.to_checksum_address(v["zone"]),
    }


def _order_fulfilled(v: dict[str, Any]) -> dict[str, str]:
    return {
        "orderHash": hex32(v["orderHash"]),
        "offerer": Web3.to_checksum_address(v["offerer"]),
        "zone": Web3.to_checksum_address(v["zone"]),
        "recipient": Web3.to_checksum_address(v["recipient"]),
        "offerItemCount": str(len(v["offer"])),
        "considerationCount": str(len(v["consideration"])),
    }


def _order_validated(v: dict[str, Any]) -> dict[str, str]:
    (offerer, zone, offer, consideration, order_type,
     start_time, end_time, _zone_hash, salt, conduit_key, _total) = v["orderParameters"]
    return {
        "orderHash": hex32(v["orderHash"]),
        "offerer": Web3.to_checksum_address(offerer),
        "zone": Web3.to_checksum_address(zone),
        "orderType": str(order_type),
        "startTime": str(start_time),
        "endTime": str(end_time),
        "salt": str(salt),
        "conduitKey": hex32(conduit_key),
        "offerCount": str(len(offer)),
        "considerCount": str(len(consideration)),
    }


def _orders_matched(v: dict[str, Any]) -> dict[str, str]:
    return {
        "orderHashes": ",".join(hex32(h) for h in v["orderHashes"]),
    }


SEAPORT_EVENTS: tuple[EventDefinition, ...] = (
    EventDefinition(
        name=EventName.COUNTER_INCREMENTED.value,
        inputs=(
            EventInput("newCounter", "uint256"),
            EventInput("offerer", "address", indexed=True),
        ),
        build_attributes=_counter_incremented,
    ),
    EventDefinition(
        name=EventName.ORDER_CANCELLED.value,
        inputs=(
            EventInput("orderHash", "bytes32"),
            EventInput("offerer", "address", indexed=True),
            EventInput("zone", "address", indexed=True),
        ),
        build_attributes=_order_cancelled,
    ),
    EventDefinition(
        name=EventName.ORDER_FULFILLED.value,
        inputs=(
            EventInput("orderHash", "bytes32"),
            EventInput("offerer", "address", indexed=True),
            EventInput("zone", "address", indexed=True),
            EventInput("recipient", "address"),
            EventInput("offer", f"{SPENT_ITEM}[]"),
            EventInput("consideration", f"{RECEIVED_ITEM}[]"),
        ),
        build_attributes=_order_fulfilled,
    ),
    EventDefinition(
        name=EventName.ORDER_VALIDATED.value,
        inputs=(
            EventInput("orderHash", "bytes32"),
            EventInput("orderParameters", ORDER_PARAMETERS),
        ),
        build_attributes=_order_validated,
    ),
    EventDefinition(
        name=EventName.ORDERS_MATCHED.value,
        inputs=(EventInput("orderHashes", "bytes32[]"),),
        build_attributes=_orders_matched,
    ),
)


def build_seaport_registry() -> EventRegistry:
    """Registry holding every tracked Seaport event in consumer order"""
    registry = EventRegistry()
    for definition in SEAPORT_EVENTS:
        registry.register(definition)
    return registry
