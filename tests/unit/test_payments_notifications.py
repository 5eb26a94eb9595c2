import httpx

from storefront.payments import notifications

ORDER = {"id": "42", "user_id": "u1", "total_cents": 1000, "currency": "eur", "payment_intent_id": "pi_1"}
URL = "https://hooks.example.com/owner"

class _Resp:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("POST", URL)
            raise httpx.HTTPStatusError("error", request=request, response=httpx.Response(self.status_code, request=request))

def test_skipped_without_url(store, monkeypatch):
    def _never(*a, **k):
        raise AssertionError("aucun appel réseau attendu")
    monkeypatch.setattr(notifications.httpx, "post", _never)
    assert notifications.notify_order_paid(ORDER) is False

def test_sends_recap_with_items(store, monkeypatch):
    store.order_items.append({
        "order_id": "42", "item_id": 1, "variant_id": 10, "quantity": 2,
        "unit_price_minor": "500.00", "customization": {"size": "M"},
    })
    calls = {}

    def fake_post(url, json=None, timeout=None):
        calls.update(url=url, json=json, timeout=timeout)
        return _Resp(200)

    monkeypatch.setattr(notifications.httpx, "post", fake_post)
    assert notifications.notify_order_paid(ORDER, url=URL) is True
    assert calls["url"] == URL
    assert calls["timeout"] == notifications.config.OWNER_NOTIFY_TIMEOUT_SECONDS
    recap = calls["json"]
    assert recap["event"] == "order.paid"
    assert recap["order_id"] == "42"
    assert recap["total_cents"] == 1000
    assert recap["items"][0]["quantity"] == 2

def test_http_error_is_swallowed(store, monkeypatch):
    monkeypatch.setattr(notifications.httpx, "post", lambda *a, **k: _Resp(502))
    assert notifications.notify_order_paid(ORDER, url=URL) is False

def test_timeout_is_swallowed(store, monkeypatch):
    def fake_post(*a, **k):
        raise httpx.ReadTimeout("slow")
    monkeypatch.setattr(notifications.httpx, "post", fake_post)
    assert notifications.notify_order_paid(ORDER, url=URL) is False

def test_items_read_failure_is_swallowed(store, monkeypatch):
    def _fail(order_id):
        raise RuntimeError("db down")
    monkeypatch.setattr("storefront.payments.repository.get_order_items", _fail)
    assert notifications.notify_order_paid(ORDER, url=URL) is False
