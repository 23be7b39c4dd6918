# tests/test_events.py

import pytest
from web3 import Web3

from seawatch.services.replay.events import (
    EventDefinition,
    EventInput,
    EventRegistry,
    build_seaport_registry
)
from seawatch.shared.core.exceptions import DecodeError

from fakes import (
    DEFINITIONS,
    OFFERER,
    ORDER_HASH,
    RECIPIENT,
    ZONE,
    build_log,
    counter_incremented_log,
    order_cancelled_log
)


def test_signature_texts_follow_declaration_order():
    assert DEFINITIONS["CounterIncremented"].signature_text == "CounterIncremented(uint256,address)"
    assert DEFINITIONS["OrderCancelled"].signature_text == "OrderCancelled(bytes32,address,address)"
    assert DEFINITIONS["OrdersMatched"].signature_text == "OrdersMatched(bytes32[])"
    assert DEFINITIONS["OrderFulfilled"].signature_text.startswith(
        "OrderFulfilled(bytes32,address,address,address,"
    )


def test_topic_is_keccak_of_signature():
    definition = DEFINITIONS["OrderCancelled"]
    assert definition.topic == Web3.to_hex(Web3.keccak(text="OrderCancelled(bytes32,address,address)"))


def test_registry_keeps_consumer_order():
    registry = build_seaport_registry()
    assert [d.name for d in registry] == [
        "CounterIncremented",
        "OrderCancelled",
        "OrderFulfilled",
        "OrderValidated",
        "OrdersMatched",
    ]
    assert len(registry) == 5
    topic = DEFINITIONS["OrdersMatched"].topic
    assert registry.get("0x" + topic[2:].upper()).name == "OrdersMatched"
    assert registry.get("0x" + "00" * 32) is None


def test_registry_rejects_duplicates():
    registry = EventRegistry()
    registry.register(DEFINITIONS["OrdersMatched"])
    with pytest.raises(ValueError):
        registry.register(DEFINITIONS["OrdersMatched"])


def test_custom_event_registration():
    """New event types are added by registration alone"""
    transfer = EventDefinition(
        name="Transfer",
        inputs=(
            EventInput("from", "address", indexed=True),
            EventInput("to", "address", indexed=True),
            EventInput("value", "uint256"),
        ),
        build_attributes=lambda v: {"value": str(v["value"])}
    )
    registry = EventRegistry()
    registry.register(transfer)
    assert registry.get(transfer.topic) is transfer
    assert transfer.topic == "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def test_decode_counter_incremented():
    attributes = DEFINITIONS["CounterIncremented"].decode(counter_incremented_log(10, counter=7))
    assert attributes == {"newCounter": "7", "offerer": OFFERER}


def test_decode_order_cancelled():
    attributes = DEFINITIONS["OrderCancelled"].decode(order_cancelled_log(20))
    assert attributes == {
        "orderHash": "0x" + "ab" * 32,
        "offerer": OFFERER,
        "zone": ZONE,
    }


def test_decode_order_fulfilled():
    log = build_log("OrderFulfilled", {
        "orderHash": ORDER_HASH,
        "offerer": OFFERER,
        "zone": ZONE,
        "recipient": RECIPIENT,
        "offer": [(2, RECIPIENT, 1, 1)],
        "consideration": [(0, ZONE, 0, 10**18, OFFERER), (0, ZONE, 0, 10**16, ZONE)],
    }, block_number=30)

    attributes = DEFINITIONS["OrderFulfilled"].decode(log)
    assert attributes["recipient"] == RECIPIENT
    assert attributes["offerItemCount"] == "1"
    assert attributes["considerationCount"] == "2"


def test_decode_order_validated():
    parameters = (
        OFFERER,
        ZONE,
        [(2, RECIPIENT, 5, 1, 1)],
        [(0, ZONE, 0, 100, 100, OFFERER)],
        1,
        1700000000,
        1800000000,
        b"\x00" * 32,
        42,
        b"\x01" * 32,
        1,
    )
    log = build_log("OrderValidated", {"orderHash": ORDER_HASH, "orderParameters": parameters}, block_number=40)

    attributes = DEFINITIONS["OrderValidated"].decode(log)
    assert attributes["orderType"] == "1"
    assert attributes["startTime"] == "1700000000"
    assert attributes["endTime"] == "1800000000"
    assert attributes["salt"] == "42"
    assert attributes["conduitKey"] == "0x" + "01" * 32
    assert attributes["offerCount"] == "1"
    assert attributes["considerCount"] == "1"


def test_decode_orders_matched():
    hashes = [bytes.fromhex("01" * 32), bytes.fromhex("02" * 32)]
    log = build_log("OrdersMatched", {"orderHashes": hashes}, block_number=50)
    attributes = DEFINITIONS["OrdersMatched"].decode(log)
    assert attributes == {"orderHashes": f"0x{'01' * 32},0x{'02' * 32}"}


def test_decode_rejects_other_event():
    with pytest.raises(DecodeError):
        DEFINITIONS["CounterIncremented"].decode(order_cancelled_log(20))


def test_decode_rejects_truncated_data():
    log = order_cancelled_log(20).model_copy(update={"data": "0x1234"})
    with pytest.raises(DecodeError):
        DEFINITIONS["OrderCancelled"].decode(log)


def test_decode_rejects_missing_topics():
    log = order_cancelled_log(20)
    log = log.model_copy(update={"topics": log.topics[:2]})
    with pytest.raises(DecodeError):
        DEFINITIONS["OrderCancelled"].decode(log)
