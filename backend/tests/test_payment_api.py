import re
import uuid

from app.config import Settings, get_settings
from app.main import app


def _initiate(client, headers, payload):
    return client.post("/api/payment/initiate", json=payload, headers=headers)


def test_card_payment_flow(client, customer_headers, card_payload):
    r = _initiate(client, customer_headers, card_payload)
    assert r.status_code == 200
    body = r.json()
    session = body["session"]

    assert body["success"] is True
    assert body["payment_result"] is None
    assert body["message"] == "OTP sent to your registered mobile number"
    assert session["status"] == "requires_action"
    assert session["requires_otp"] is True
    assert session["masked_card"] == "XXXX-XXXX-XXXX-1111"
    assert session["card_brand"] == "VISA"
    assert re.fullmatch(r"\d{6}", session["otp_hint"])
    assert "4111111111111111" not in r.text
    assert "card_number" not in r.text

    r = client.post(
        "/api/payment/confirm",
        json={"session_id": session["id"], "otp": session["otp_hint"]},
        headers=customer_headers,
    )
    assert r.status_code == 200
    result = r.json()["payment_result"]
    assert result["status"] == "succeeded"
    assert result["amount"] == 500
    assert result["method"] == "Card"
    assert result["card_brand"] == "VISA"
    assert result["email_address"] == "a@b.com"

    r = client.get(f"/api/payment/status/{session['id']}", headers=customer_headers)
    assert r.status_code == 404


def test_status_of_pending_session(client, customer_headers):
    r = _initiate(client, customer_headers, {"amount": 120, "method": "UPI", "upi_id": "ab@upi"})
    session_id = r.json()["session"]["id"]

    r = client.get(f"/api/payment/status/{session_id}", headers=customer_headers)
    assert r.status_code == 200
    session = r.json()["session"]
    assert session["status"] == "requires_action"
    assert session["masked_upi"] == "ab***@upi"
    assert session["otp_hint"] is None


def test_confirm_twice_returns_same_transaction(client, customer_headers, card_payload):
    email = f"{uuid.uuid4().hex[:8]}@example.com"
    headers = {**customer_headers, "x-customer-email": email}
    session = _initiate(client, headers, card_payload).json()["session"]
    confirm = {"session_id": session["id"], "otp": session["otp_hint"]}

    first = client.post("/api/payment/confirm", json=confirm, headers=headers).json()["payment_result"]
    second = client.post("/api/payment/confirm", json=confirm, headers=headers).json()["payment_result"]
    assert first["id"] == second["id"]

    listing = client.get("/api/admin/payments", params={"email": email}).json()
    assert listing["total"] == 1
    assert listing["payments"][0]["transaction_id"] == first["id"]
    assert listing["payments"][0]["masked_card"] == "XXXX-XXXX-XXXX-1111"

    trail = client.get(f"/api/admin/audit/{session['id']}").json()
    confirmed = [entry for entry in trail if entry["action"] == "PAYMENT_CONFIRMED"]
    assert len(confirmed) == 1
    assert confirmed[0]["log_metadata"]["transaction_id"] == first["id"]


def test_instant_method_settles_on_initiate(client, customer_headers):
    r = _initiate(client, customer_headers, {"amount": 75, "method": "COD"})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Payment authorized successfully"
    assert body["session"]["requires_otp"] is False
    assert body["session"]["otp_hint"] is None
    assert body["payment_result"]["status"] == "succeeded"
    assert body["payment_result"]["method"] == "COD"


def test_wrong_otp(client, customer_headers, card_payload):
    session = _initiate(client, customer_headers, card_payload).json()["session"]
    wrong = "000000" if session["otp_hint"] != "000000" else "111111"

    r = client.post("/api/payment/confirm", json={"session_id": session["id"], "otp": wrong}, headers=customer_headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "INVALID_OTP"

    r = client.get(f"/api/payment/status/{session['id']}", headers=customer_headers)
    assert r.json()["session"]["status"] == "requires_action"


def test_missing_otp(client, customer_headers, card_payload):
    session = _initiate(client, customer_headers, card_payload).json()["session"]
    r = client.post("/api/payment/confirm", json={"session_id": session["id"]}, headers=customer_headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "OTP_REQUIRED"


def test_confirm_unknown_session(client, customer_headers):
    r = client.post("/api/payment/confirm", json={"session_id": "session_000000000000", "otp": "123456"}, headers=customer_headers)
    assert r.status_code == 404
    assert r.json()["error_code"] == "SESSION_NOT_FOUND"


def test_confirm_requires_session_id(client, customer_headers):
    r = client.post("/api/payment/confirm", json={"otp": "123456"}, headers=customer_headers)
    assert r.status_code == 400


def test_expired_session(client, clock, customer_headers, card_payload):
    session = _initiate(client, customer_headers, card_payload).json()["session"]
    clock.advance(301)

    assert client.get(f"/api/payment/status/{session['id']}", headers=customer_headers).status_code == 404
    r = client.post("/api/payment/confirm", json={"session_id": session["id"], "otp": session["otp_hint"]}, headers=customer_headers)
    assert r.status_code == 404


def test_validation_errors(client, customer_headers, card_payload):
    cases = [
        ({**card_payload, "amount": 0}, "INVALID_AMOUNT"),
        ({**card_payload, "amount": -5}, "INVALID_AMOUNT"),
        ({**card_payload, "card_number": "4111"}, "INVALID_CARD_NUMBER"),
        ({**card_payload, "card_holder": "Al"}, "INVALID_CARD_HOLDER"),
        ({**card_payload, "expiry": "13/29"}, "INVALID_EXPIRY"),
        ({**card_payload, "cvv": "1"}, "INVALID_CVV"),
        ({"amount": 10, "method": "UPI", "upi_id": "nohandle"}, "INVALID_UPI_ID"),
        ({"amount": 10, "method": "Bitcoin"}, "INVALID_METHOD"),
        ({"amount": 10}, "METHOD_REQUIRED"),
    ]
    for payload, code in cases:
        r = _initiate(client, customer_headers, payload)
        assert r.status_code == 400, payload
        assert r.json()["error_code"] == code


def test_amount_error_message_comes_from_engine(client, customer_headers, card_payload):
    for amount in (0, None):
        r = _initiate(client, customer_headers, {**card_payload, "amount": amount})
        assert r.status_code == 400
        assert r.json() == {"detail": "Amount must be greater than zero", "error_code": "INVALID_AMOUNT"}


def test_customer_identity_required(client, card_payload):
    assert client.post("/api/payment/initiate", json=card_payload).status_code == 401
    assert client.get("/api/payment/status/session_000000000000").status_code == 401


def test_otp_hint_hidden_in_production(client, customer_headers, card_payload):
    app.dependency_overrides[get_settings] = lambda: Settings(ENVIRONMENT="production", EXPOSE_OTP_HINT=True)
    try:
        r = _initiate(client, customer_headers, card_payload)
    finally:
        app.dependency_overrides.pop(get_settings, None)

    assert r.status_code == 200
    assert r.json()["session"]["otp_hint"] is None


def test_otp_hint_flag_off(client, customer_headers, card_payload):
    app.dependency_overrides[get_settings] = lambda: Settings(ENVIRONMENT="development", EXPOSE_OTP_HINT=False)
    try:
        r = _initiate(client, customer_headers, card_payload)
    finally:
        app.dependency_overrides.pop(get_settings, None)

    assert r.json()["session"]["otp_hint"] is None


def test_confirm_is_rate_limited(client, customer_headers):
    limit = get_settings().RATE_LIMIT_REQUESTS
    payload = {"session_id": "session_000000000000", "otp": "123456"}
    for _ in range(limit):
        assert client.post("/api/payment/confirm", json=payload, headers=customer_headers).status_code == 404

    r = client.post("/api/payment/confirm", json=payload, headers=customer_headers)
    assert r.status_code == 429


def test_health(client, customer_headers):
    _initiate(client, customer_headers, {"amount": 10, "method": "UPI", "upi_id": "ab@upi"})
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"
    assert body["live_payment_sessions"] == 1
