import pytest
from fastapi.testclient import TestClient

from garden_alerts.main import create_app
from garden_alerts.schemas import Feed, UpstreamUpdate

from conftest import (FakeMailer, FakeProvider, make_catalog_client,
                      stock_payload)


def build_client(settings, mailer=None, updates=()):
    app = create_app(
        settings,
        provider=FakeProvider(updates),
        mailer=mailer or FakeMailer(),
        catalog_client=make_catalog_client(),
    )
    return TestClient(app)


@pytest.fixture
def client(settings):
    with build_client(settings) as test_client:
        yield test_client


def verify(client, email):
    assert client.post("/request-verification", json={"email": email}).status_code == 200
    token = client.app.state.store.pending_for(email).token
    return client.get("/verify", params={"email": email, "token": token}, follow_redirects=False)


def test_full_subscription_flow(client):
    assert client.get("/check-verification", params={"email": "a@x.com"}).json()["verified"] is False

    response = client.post("/request-verification", json={"email": "a@x.com"})
    assert response.json() == {
        "success": True,
        "message": "Verification email sent. Please check your inbox.",
    }

    token = client.app.state.store.pending_for("a@x.com").token
    response = client.get("/verify", params={"email": "a@x.com", "token": token}, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/?verified=true&email=a%40x.com"
    assert client.get("/check-verification", params={"email": "a@x.com"}).json()["verified"] is True

    response = client.post("/subscribe", json={"email": "a@x.com", "items": ["seed1"]})
    assert response.json() == {"success": True, "message": "Subscription successful!"}
    assert client.app.state.store.watch_set("a@x.com") == {"seed1"}

    response = client.get("/unsub", params={"email": "a@x.com"}, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/?unsubscribed=true"
    assert not client.app.state.store.is_subscribed("a@x.com")


def test_verification_email_is_sent(settings):
    mailer = FakeMailer()
    with build_client(settings, mailer) as client:
        client.post("/request-verification", json={"email": "a@x.com"})
    # shutdown drains in-flight sends
    [(recipient, message)] = mailer.sent_with_subject("Verify")
    assert recipient == "a@x.com"
    assert "/verify?email=a%40x.com&token=" in message.text
    assert mailer.closed


def test_check_verification_requires_email(client):
    response = client.get("/check-verification")

    assert response.status_code == 400
    assert response.json() == {"verified": False, "message": "Email is required."}


@pytest.mark.parametrize("body", [{}, {"email": "nope"}, {"email": ""}])
def test_request_verification_rejects_bad_email(client, body):
    response = client.post("/request-verification", json=body)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_request_verification_rejects_subscribed(client):
    verify(client, "a@x.com")
    client.post("/subscribe", json={"email": "a@x.com", "items": ["seed1"]})

    response = client.post("/request-verification", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Email is already subscribed."}


def test_verify_with_bad_token_is_plain_text(client):
    client.post("/request-verification", json={"email": "a@x.com"})

    response = client.get("/verify", params={"email": "a@x.com", "token": "wrong"})

    assert response.status_code == 400
    assert response.text == "Invalid or expired verification link."
    assert response.headers["content-type"].startswith("text/plain")

    response = client.get("/verify", params={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.text == "Invalid verification link."


def test_subscribe_before_verification(client):
    response = client.post("/subscribe", json={"email": "a@x.com", "items": ["seed1"]})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Email not verified"}


@pytest.mark.parametrize(
    "body",
    [{"email": "a@x.com"}, {"email": "a@x.com", "items": []}, {"items": ["seed1"]}, {"email": 5, "items": {"x": 1}}],
)
def test_subscribe_rejects_invalid_input(client, body):
    response = client.post("/subscribe", json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid input"}


def test_unsubscribe_unknown_email(client):
    response = client.get("/unsub", params={"email": "ghost@x.com"})

    assert response.status_code == 404
    assert response.text == "Email not found in subscriptions."


def test_health_reports_counts(client):
    verify(client, "a@x.com")
    client.post("/subscribe", json={"email": "a@x.com", "items": ["seed1"]})
    client.post("/request-verification", json={"email": "b@x.com"})

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["upstream_mode"] == "poll"
    assert body["subscriptions"] == 1
    assert body["verified_emails"] == 1
    assert body["pending_verifications"] == 1
    assert body["uptime_seconds"] >= 0


def test_items_routes(client):
    refreshed = client.get("/refresh-items").json()

    assert [entry["item_id"] for entry in refreshed] == ["carrot", "watering_can"]
    assert client.get("/get-items").json() == refreshed


def test_test_email_disabled_by_default(client):
    assert client.get("/test-email").status_code == 404


def test_test_email_when_enabled(settings):
    mailer = FakeMailer()
    enabled = settings.model_copy(update={"enable_test_email": True})
    with build_client(enabled, mailer) as client:
        response = client.get("/test-email")
        assert response.json() == {"success": True, "message": "Test email sent to bot@mail.com"}
    assert mailer.sent_with_subject("Test Email")


def test_index_page(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]


def test_logs_backlog_and_websocket(client):
    lines = client.get("/logs/recent").json()
    assert any(line.endswith("] SMTP connection verified") for line in lines)

    with client.websocket_connect("/logs") as websocket:
        first = websocket.receive_text()
    assert first.startswith("[")
    assert first == lines[0]


def test_stock_update_from_upstream_reaches_subscriber(settings):
    mailer = FakeMailer()
    with build_client(settings, mailer) as client:
        verify(client, "a@x.com")
        client.post("/subscribe", json={"email": "a@x.com", "items": ["seed1"]})
        coordinator = client.app.state.coordinator
        client.portal.call(
            coordinator.handle, UpstreamUpdate(feed=Feed.STOCK, payload=stock_payload(seed1=5))
        )
    [(recipient, message)] = mailer.sent_with_subject("Stock Updated")
    assert recipient == "a@x.com"
    assert "- seed1 (seed1): 5" in message.text
