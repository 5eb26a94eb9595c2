def test_abandoned_requires_auth(client, store):
    r = client.get("/admin/orders/abandoned")
    assert r.status_code == 401


def test_abandoned_forbidden_for_customers(client, store):
    r = client.get("/admin/orders/abandoned", headers={"Authorization": "Bearer good-token"})
    assert r.status_code == 403


def test_abandoned_lists_pending_orders_without_intent(client, store):
    abandoned = store.add_order(payment_intent_id=None)
    store.add_order(payment_intent_id="pi_1")
    store.add_order(status="paid", payment_intent_id="pi_2")
    r = client.get("/admin/orders/abandoned", headers={"Authorization": "Bearer admin-token"})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert body["orders"][0]["id"] == abandoned


def test_abandoned_rejects_negative_threshold(client, store):
    r = client.get("/admin/orders/abandoned?older_than_minutes=-1", headers={"Authorization": "Bearer admin-token"})
    assert r.status_code == 422


def test_abandoned_store_failure(client, store):
    store.fail_on.add("list_abandoned_orders")
    r = client.get("/admin/orders/abandoned", headers={"Authorization": "Bearer admin-token"})
    assert r.status_code == 500
    assert r.json()["code"] == "UnexpectedFailure"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    info = client.get("/health/rate-limit").json()
    assert info["enabled"] is False
