from decimal import Decimal

from taskshare.models.audit import AuditLog
from taskshare.utils.audit import actor_from_user, log_audit
from taskshare.utils.money import format_cents, from_cents, quantize, to_cents


def test_audit_log_masks_sensitive_fields(db_session):
    payload = {
        "iban": "DE89 3704 0044 0532 0130 00",
        "email": "sensitive@example.com",
        "device_token": "fcm-token-abcdef123456",
        "nested": [{"wallet_bank_iban": "FR7612345678901234567890185"}],
        "amount_cents": 2000,
    }

    log_audit(db_session, actor="test", action="MASK_TEST", entity="User", entity_id=1, data=payload)
    db_session.commit()

    entry = db_session.query(AuditLog).filter(AuditLog.action == "MASK_TEST").one()
    assert entry.data_json["iban"] == "***3000"
    assert entry.data_json["email"] == "***@example.com"
    assert entry.data_json["device_token"] == "***3456"
    assert entry.data_json["nested"][0]["wallet_bank_iban"] == "***0185"
    assert entry.data_json["amount_cents"] == 2000


def test_actor_from_user():
    class Stub:
        id = 7

    assert actor_from_user(Stub()) == "user:7"
    assert actor_from_user(None) == "system"
    assert actor_from_user(None, fallback="cron") == "cron"


def test_cent_conversions_round_half_up():
    assert to_cents("20") == 2000
    assert to_cents(Decimal("0.005")) == 1
    assert to_cents(12.345) == 1235
    assert from_cents(12345) == Decimal("123.45")
    assert format_cents(5) == "0.05"
    assert quantize("2.5") == Decimal("2.50")
