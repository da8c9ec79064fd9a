import pytest

from baropay.exceptions import (
    AmountMismatchError,
    InvalidOrderIdError,
    MissingFieldsError,
    OrderNotFoundError,
    OrderTamperedError,
)
from baropay.models.orders import OrderId, OrderRecord
from baropay.services.order_service import OrderVerifier
from baropay.services.signature_service import Signer

from ..conftest import TTL_MS


def test_verify_example(issuer, verifier):
    issued = issuer.create_order(1000, "Widget")

    authorized = verifier.verify_and_authorize(issued.order_id, 1000, "pay_123")

    assert authorized.order_id == issued.order_id
    assert authorized.amount == 1000
    assert authorized.record.order_name == "Widget"


def test_verify_does_not_consume_the_order(issuer, verifier, store):
    issued = issuer.create_order(1000)
    verifier.verify_and_authorize(issued.order_id, 1000, "pay_123")
    assert store.get(issued.order_id) is not None


def test_claimed_amount_string_is_accepted(issuer, verifier):
    issued = issuer.create_order(1000)
    assert verifier.verify_and_authorize(issued.order_id, "1000", "pay_123").amount == 1000


@pytest.mark.parametrize("order_id,amount,payment_key", [
    ("ID", 1000, None),
    ("ID", 1000, ""),
    (None, 1000, "pay_123"),
    ("", 1000, "pay_123"),
    ("ID", None, "pay_123"),
    ("ID", "abc", "pay_123"),
    ("ID", 10.5, "pay_123"),
])
def test_missing_fields(issuer, verifier, order_id, amount, payment_key):
    issued = issuer.create_order(1000)
    if order_id == "ID":
        order_id = issued.order_id
    with pytest.raises(MissingFieldsError):
        verifier.verify_and_authorize(order_id, amount, payment_key)


@pytest.mark.parametrize("order_id", [
    "garbage",
    "BARO_1_2",
    "BARO_1_2_3_4",
    "NOPE_1760000000000_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa",
    "BARO_abc_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa",
    "BARO_1760000000000_xyz_aaaaaaaaaaaaaaaaaaaaaaaa",
    "BARO_1760000000000_0000000000000001_aaaa",
    "BARO_1760000000000_0000000000000001_AAAAAAAAAAAAAAAAAAAAAAAA",
    "BARO_1760000000000_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa\n",
    "BARO_1760000000000\n_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa",
    "BARO_1760000000000_0000000000000001\n_aaaaaaaaaaaaaaaaaaaaaaaa",
])
def test_invalid_order_id(verifier, order_id):
    with pytest.raises(InvalidOrderIdError):
        verifier.verify_and_authorize(order_id, 1000, "pay_123")


def test_trailing_newline_on_issued_id_is_invalid(issuer, verifier, store):
    issued = issuer.create_order(1000)

    with pytest.raises(InvalidOrderIdError):
        verifier.verify_and_authorize(issued.order_id + "\n", 1000, "pay_123")
    assert store.get(issued.order_id) is not None


def test_parse_requires_whole_segment_match():
    valid = "BARO_1760000000000_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa"
    assert str(OrderId.parse(valid, "BARO")) == valid
    assert OrderId.parse(valid + "\n", "BARO") is None
    assert OrderId.parse(valid.replace("_0000", "\n_0000", 1), "BARO") is None


def test_unknown_order_not_found(verifier):
    with pytest.raises(OrderNotFoundError):
        verifier.verify_and_authorize(
            "BARO_1760000000000_0000000000000001_aaaaaaaaaaaaaaaaaaaaaaaa", 1000, "pay_123"
        )


def test_expired_order_not_found(issuer, verifier, clock):
    issued = issuer.create_order(1000)
    clock.advance(TTL_MS + 1)
    with pytest.raises(OrderNotFoundError):
        verifier.verify_and_authorize(issued.order_id, 1000, "pay_123")


def test_order_just_inside_ttl_is_valid(issuer, verifier, clock):
    issued = issuer.create_order(1000)
    clock.advance(TTL_MS)
    assert verifier.verify_and_authorize(issued.order_id, 1000, "pay_123").amount == 1000


def test_deleted_order_not_found(issuer, verifier, store):
    issued = issuer.create_order(1000)
    store.delete(issued.order_id)
    with pytest.raises(OrderNotFoundError):
        verifier.verify_and_authorize(issued.order_id, 1000, "pay_123")


def test_mutated_segments_never_verify(issuer, verifier):
    issued = issuer.create_order(1000, "Widget")
    parsed = OrderId.parse(issued.order_id, "BARO")

    def flip(hex_text: str) -> str:
        return ("1" if hex_text[0] == "0" else "0") + hex_text[1:]

    mutations = [
        issued.order_id.replace("BARO", "BARA", 1),
        f"BARO_{int(parsed.timestamp) + 1}_{parsed.nonce}_{parsed.signature}",
        f"BARO_{parsed.timestamp}_{flip(parsed.nonce)}_{parsed.signature}",
        f"BARO_{parsed.timestamp}_{parsed.nonce}_{flip(parsed.signature)}",
        f"BARO_{parsed.timestamp}_{parsed.nonce}_{parsed.signature[:-1]}",
        issued.order_id + "_extra",
    ]
    for mutated in mutations:
        with pytest.raises((InvalidOrderIdError, OrderNotFoundError, OrderTamperedError)):
            verifier.verify_and_authorize(mutated, 1000, "pay_123")


def test_tampered_when_stored_record_does_not_match_signature(issuer, verifier, store):
    issued = issuer.create_order(1000, "Widget")
    record = store.get(issued.order_id)
    store.put(issued.order_id, OrderRecord(
        amount=10,
        order_name=record.order_name,
        created_at=record.created_at,
    ))

    with pytest.raises(OrderTamperedError):
        verifier.verify_and_authorize(issued.order_id, 10, "pay_123")


def test_tampered_when_signed_with_another_key(issuer, store):
    issued = issuer.create_order(1000)
    other = OrderVerifier(store, Signer("a-different-secret"))
    with pytest.raises(OrderTamperedError):
        other.verify_and_authorize(issued.order_id, 1000, "pay_123")


def test_amount_mismatch_reports_both_amounts(issuer, verifier, store):
    issued = issuer.create_order(1000)

    with pytest.raises(AmountMismatchError) as exc:
        verifier.verify_and_authorize(issued.order_id, 100, "pay_123")

    body = exc.value.to_dict()
    assert body["code"] == "AMOUNT_MISMATCH"
    assert body["expectedAmount"] == 1000
    assert body["receivedAmount"] == 100
    # The order remains usable with the correct amount
    assert store.get(issued.order_id) is not None
