"""Integration tests for API endpoints"""

from decimal import Decimal
from fastapi.testclient import TestClient
from conftest import FakeCompletionClient, FakeLedger, classifier_reply
from finia_gateway.api.dependencies import get_completion_client, get_ledger, get_user_locks
from finia_gateway.domain import messages
from finia_gateway.domain.states import CONVERSATION_TOPIC
from finia_gateway.utils.locks import KeyedLocks
from finia_gateway.infrastructure.database.models import LedgerEntry
from finia_gateway.infrastructure.database.repositories import ConversationStateRepository


def _send(client: TestClient, text: str, sender: str = "whatsapp:+5511900000001"):
    return client.post("/v1/webhook/message", json={"text": text, "sender_address": sender})


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == "finia-gateway"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finia_messages_total" in response.text
    assert "finia_classification_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    """Test the caller's X-Request-ID comes back, or one is generated"""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_unregistered_sender(client: TestClient):
    """Test POST /v1/webhook/message from an unknown number"""
    response = _send(client, "Almoço R$ 50", sender="whatsapp:+5599999999999")

    assert response.status_code == 200
    assert response.json() == {"reply": messages.NOT_REGISTERED}


def test_missing_sender_is_rejected(client: TestClient):
    """Test request validation"""
    response = client.post("/v1/webhook/message", json={"text": "Almoço R$ 50"})
    assert response.status_code == 422

    response = client.post("/v1/webhook/message", json={"text": "Almoço R$ 50", "sender_address": ""})
    assert response.status_code == 422


def test_resolved_message_is_saved(client: TestClient, db, personal_user, completion_client):
    """Test a confident classification lands in ledger_entries"""
    response = _send(client, "Almoço no Restaurante R$ 50 12/04")

    assert response.status_code == 200
    assert response.json()["reply"].startswith("✅ Despesa registrada!")

    entries = db.query(LedgerEntry).all()
    assert len(entries) == 1
    assert entries[0].ledger_handle == "sheet-ana"
    assert entries[0].amount == Decimal("50.00")
    assert entries[0].nature == "EXPENSE"
    assert entries[0].business_context == "PERSONAL"
    assert entries[0].category == "Alimentação"
    assert len(completion_client.calls) == 1


def test_low_confidence_confirmation_flow(app, client: TestClient, db, personal_user):
    """Test a yes/no confirmation across two requests"""
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient(classifier_reply(confidence=0.5))

    response = _send(client, "Almoço no Restaurante R$ 50")
    assert "Responda *sim* para registrar ou *não* para corrigir." in response.json()["reply"]
    assert db.query(LedgerEntry).count() == 0

    response = _send(client, "sim")
    assert response.json()["reply"].startswith("✅ Despesa registrada!")
    assert db.query(LedgerEntry).count() == 1
    assert ConversationStateRepository(db).get_state(personal_user.id, CONVERSATION_TOPIC) is None


def test_failed_save_keeps_state(app, client: TestClient, db, personal_user):
    """Test a ledger failure answers with a retry message and keeps the pending confirmation"""
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient(classifier_reply(confidence=0.5))
    _send(client, "Almoço R$ 50")

    app.dependency_overrides[get_ledger] = lambda: FakeLedger(fail=True)
    response = _send(client, "sim")

    assert response.status_code == 200
    assert response.json() == {"reply": messages.SAVE_FAILED}
    stored = ConversationStateRepository(db).get_state(personal_user.id, CONVERSATION_TOPIC)
    assert stored.payload["step"] == "awaiting_confirmation"

    del app.dependency_overrides[get_ledger]
    response = _send(client, "sim")

    assert response.json()["reply"].startswith("✅ Despesa registrada!")
    assert db.query(LedgerEntry).count() == 1


def test_batch_message(client: TestClient, db, personal_user):
    """Test several transactions in one message"""
    response = _send(client, "Mercado R$ 100\nUber R$ 35")

    assert response.json()["reply"].startswith("✅ 2 transações registradas!")
    assert db.query(LedgerEntry).count() == 2


def test_onboarding_over_http(client: TestClient, new_user):
    """Test a user who hasn't finished onboarding is onboarded first"""
    response = _send(client, "Almoço R$ 50", sender="whatsapp:+5511900000003")

    assert "Como você gostaria de ser chamado(a)?" in response.json()["reply"]


def test_unexpected_error_answers_generic_message(app, client: TestClient, personal_user):
    """Test unexpected failures still answer 200 with an apology"""

    class BrokenLedger:
        async def append_record(self, ledger_handle, record):
            raise RuntimeError("bug")

    app.dependency_overrides[get_ledger] = lambda: BrokenLedger()

    response = _send(client, "Almoço R$ 50")

    assert response.status_code == 200
    assert response.json() == {"reply": messages.GENERIC_ERROR}


def test_sender_lock_ignores_channel_prefix(app, client: TestClient, personal_user):
    """Test prefixed and bare addresses of the same user share one lock"""

    class RecordingLocks(KeyedLocks):
        def __init__(self):
            super().__init__()
            self.keys = []

        def hold(self, key):
            self.keys.append(key)
            return super().hold(key)

    locks = RecordingLocks()
    app.dependency_overrides[get_user_locks] = lambda: locks

    _send(client, "Almoço R$ 50", sender="whatsapp:+5511900000001")
    _send(client, "Uber R$ 20", sender="+5511900000001")

    assert locks.keys == ["+5511900000001", "+5511900000001"]
