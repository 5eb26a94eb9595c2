import hashlib
import hmac
import itertools
import json
import os
import time
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

# Pas de Redis en tests: le rate limiting est désactivé au lifespan
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from storefront.app import app as fastapi_app
from storefront import config

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


class FakeCatalogStore:
    """
    Store en mémoire qui remplace storefront.payments.repository (mêmes signatures).
    Compte les lectures/écritures pour vérifier les propriétés « aucune écriture » et « deux lectures ».
    """

    def __init__(self):
        self.items: Dict[str, Dict[str, Any]] = {}
        self.variants: Dict[int, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.order_items: List[Dict[str, Any]] = []
        self.reads: List[str] = []
        self.writes: List[str] = []
        self.fail_on: set = set()
        self._ids = itertools.count(1)

    # --- seed ---
    def add_item(self, item_id, price):
        self.items[str(item_id)] = {"id": item_id, "price": price}

    def add_variant(self, variant_id, item_id, price, stock=None):
        self.variants[int(variant_id)] = {"id": variant_id, "item_id": item_id, "price": price, "stock": stock}

    def add_order(self, status="pending", payment_intent_id=None, **extra) -> str:
        order_id = f"ord-{next(self._ids)}"
        self.orders[order_id] = {
            "id": order_id,
            "user_id": "user-1",
            "status": status,
            "total_cents": 1000,
            "currency": "eur",
            "payment_intent_id": payment_intent_id,
            **extra,
        }
        return order_id

    def _maybe_fail(self, op: str):
        from storefront.payments.errors import CatalogStoreError
        if op in self.fail_on:
            raise CatalogStoreError(f"{op} failed")

    # --- repository API ---
    def fetch_items_by_ids(self, ids):
        ids = list(ids)
        if not ids:
            return []
        self.reads.append("items")
        self._maybe_fail("fetch_items_by_ids")
        return [self.items[str(i)] for i in ids if str(i) in self.items]

    def fetch_variants_by_ids(self, ids):
        ids = list(ids)
        if not ids:
            return []
        self.reads.append("variants")
        self._maybe_fail("fetch_variants_by_ids")
        return [self.variants[int(i)] for i in ids if int(i) in self.variants]

    def insert_order(self, *, user_id, total_cents, currency):
        self.writes.append("insert_order")
        self._maybe_fail("insert_order")
        order_id = f"ord-{next(self._ids)}"
        self.orders[order_id] = {
            "id": order_id,
            "user_id": user_id,
            "status": "pending",
            "total_cents": total_cents,
            "currency": currency,
            "payment_intent_id": None,
        }
        return order_id

    def insert_order_items(self, rows):
        self.writes.append("insert_order_items")
        self._maybe_fail("insert_order_items")
        self.order_items.extend(dict(r) for r in rows)

    def attach_payment_intent(self, order_id, payment_intent_id):
        self.writes.append("attach_payment_intent")
        self._maybe_fail("attach_payment_intent")
        order = self.orders.get(order_id)
        if not order:
            return False
        order["payment_intent_id"] = payment_intent_id
        return True

    def transition_pending_order(self, order_id, status, payment_intent_id=None):
        self.writes.append("transition_pending_order")
        self._maybe_fail("transition_pending_order")
        order = self.orders.get(order_id)
        if not order or order["status"] != "pending":
            return None
        order["status"] = status
        if payment_intent_id:
            order["payment_intent_id"] = payment_intent_id
        return dict(order)

    def get_order_items(self, order_id):
        return [r for r in self.order_items if r["order_id"] == order_id]

    def list_abandoned_orders(self, older_than_minutes, limit=100):
        self._maybe_fail("list_abandoned_orders")
        return [
            dict(o) for o in self.orders.values()
            if o["status"] == "pending" and not o.get("payment_intent_id")
        ][:limit]


@pytest.fixture
def store(monkeypatch) -> FakeCatalogStore:
    fake = FakeCatalogStore()
    import storefront.payments.repository as repository
    for name in (
        "fetch_items_by_ids",
        "fetch_variants_by_ids",
        "insert_order",
        "insert_order_items",
        "attach_payment_intent",
        "transition_pending_order",
        "get_order_items",
        "list_abandoned_orders",
    ):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


USERS = {
    "good-token": {"id": "user-1", "email": "client@example.com", "user_metadata": {}},
    "admin-token": {"id": "admin-1", "email": "admin@example.com", "user_metadata": {"role": "admin"}},
}

# Fournisseur d'identité simulé: seuls les tokens connus sont valides
@pytest.fixture(autouse=True)
def identity_provider(monkeypatch):
    def _fake_get_user(token: str):
        if token not in USERS:
            raise RuntimeError("invalid JWT")
        return USERS[token]
    monkeypatch.setattr("storefront.auth.service._repo_get_user_from_token", _fake_get_user)
    return USERS


class FakeGateway:
    def __init__(self):
        self.intents: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def create_intent(self, *, amount_minor, currency, metadata, idempotency_key=None):
        if self.error:
            raise self.error
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents.append({
            "id": intent_id,
            "amount": amount_minor,
            "currency": currency,
            "metadata": metadata,
            "idempotency_key": idempotency_key,
        })
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_abc"}


@pytest.fixture
def gateway(monkeypatch) -> FakeGateway:
    fake = FakeGateway()
    monkeypatch.setattr("storefront.payments.stripe_client.create_intent", fake.create_intent)
    return fake


@pytest.fixture
def webhook_secret(monkeypatch) -> str:
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


def sign_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature (schéma v1) pour un body brut."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"

def make_event(event_type: str, order_id: Optional[str], intent_id: str = "pi_1") -> bytes:
    metadata = {"order_id": order_id, "user_id": "user-1"} if order_id else {}
    event = {
        "id": f"evt_{event_type.replace('.', '_')}",
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": intent_id, "object": "payment_intent", "metadata": metadata}},
    }
    return json.dumps(event).encode("utf-8")

@pytest.fixture
def raw_event():
    return make_event

@pytest.fixture
def sign():
    return sign_payload

@pytest.fixture
def signed_event(webhook_secret):
    """Fabrique (body, headers) d'un événement Stripe signé avec le secret de test."""
    def _make(event_type: str, order_id: Optional[str], intent_id: str = "pi_1"):
        body = make_event(event_type, order_id, intent_id)
        return body, {"stripe-signature": sign_payload(body, webhook_secret), "content-type": "application/json"}
    return _make


@pytest.fixture(autouse=True)
def _no_owner_notifications(monkeypatch):
    # Jamais d'appel réseau réel pendant les tests
    monkeypatch.setattr(config, "OWNER_NOTIFY_WEBHOOK_URL", "")
