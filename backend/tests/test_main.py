from fastapi.testclient import TestClient


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Server is running"


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    settings = data["settings"]
    assert settings["backend_url"] == "http://booking.test/"
    assert settings["webhook_dedupe"] is False
    # secrets stay out of the health payload
    assert "whsec_test" not in response.text
    assert "rzp_test_secret" not in response.text


def test_malformed_request_body(client: TestClient):
    response = client.post(
        "/checkPayment",
        content="{invalid json}",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request"
    assert body["code"] == 400


def test_missing_request_body(client: TestClient):
    response = client.post("/createOrder")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


def test_large_payload(client: TestClient):
    large_payload = {"data": "x" * (1024 * 1024 + 1)}
    response = client.post("/razorpay-webhook", json=large_payload)
    assert response.status_code == 413
    assert response.json() == {"message": "Payload too large", "code": 413}
