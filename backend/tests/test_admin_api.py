from app.database import SessionLocal
from app.models.audit import AuditLog


def _pay_by_card(client, headers, card_payload):
    session = client.post("/api/payment/initiate", json=card_payload, headers=headers).json()["session"]
    client.post("/api/payment/confirm", json={"session_id": session["id"], "otp": "bad"}, headers=headers)
    client.post(
        "/api/payment/confirm",
        json={"session_id": session["id"], "otp": session["otp_hint"]},
        headers=headers,
    )
    return session["id"]


def test_audit_trail_records_payment_events(client, customer_headers, card_payload):
    session_id = _pay_by_card(client, customer_headers, card_payload)

    r = client.get(f"/api/admin/audit/{session_id}")
    assert r.status_code == 200
    actions = [entry["action"] for entry in r.json()]
    assert actions == ["PAYMENT_INITIATED", "PAYMENT_OTP_REJECTED", "PAYMENT_CONFIRMED"]
    assert "4111111111111111" not in r.text

    r = client.get(f"/api/admin/audit/{session_id}/verify")
    assert r.json() == {"valid": True, "total_entries": 3, "broken_at": None, "message": None}


def test_tampered_audit_chain_detected(client, customer_headers, card_payload):
    session_id = _pay_by_card(client, customer_headers, card_payload)

    db = SessionLocal()
    try:
        entry = (
            db.query(AuditLog)
            .filter(AuditLog.session_id == session_id, AuditLog.action == "PAYMENT_CONFIRMED")
            .first()
        )
        entry.log_metadata = {**entry.log_metadata, "amount": 1.0}
        db.commit()
        tampered_id = entry.id
    finally:
        db.close()

    body = client.get(f"/api/admin/audit/{session_id}/verify").json()
    assert body["valid"] is False
    assert body["broken_at"] == tampered_id


def test_unknown_audit_trail(client):
    assert client.get("/api/admin/audit/session_ffffffffffff").status_code == 404


def test_purge_expired_sessions(client, clock, customer_headers):
    client.post("/api/payment/initiate", json={"amount": 10, "method": "NetBanking"}, headers=customer_headers)
    clock.advance(400)
    client.post("/api/payment/initiate", json={"amount": 10, "method": "NetBanking"}, headers=customer_headers)

    r = client.post("/api/admin/payments/purge-expired")
    assert r.status_code == 200
    assert r.json() == {"evicted": 1, "live_sessions": 1}
