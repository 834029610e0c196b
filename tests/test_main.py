"""HTTP surface of the feed page backend."""
from __future__ import annotations

from typing import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from vietvivu_feed.client import ExploreClient
from vietvivu_feed.main import app, get_client

from conftest import make_video


@pytest.fixture()
def client(backend) -> Iterator[TestClient]:
    app.dependency_overrides[get_client] = lambda: backend
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"


def test_feed_items_carry_presentation_fields(client, backend):
    backend.videos = [
        make_video("A"),
        make_video("B", tourId=None, videoUrl="https://www.youtube.com/watch?v=abc"),
        make_video("C", approved=False),
    ]

    items = client.get("/feed").json()

    assert [i["id"] for i in items] == ["A", "B"]
    first, second = items
    assert "/upload/f_auto,q_auto:good,h_800,c_limit,dpr_auto/v1/" in first["streamUrl"]
    assert first["posterUrl"].endswith(",so_1/v1/explore/A.jpg")
    assert first["bookPath"] == "/tours/tour-1"
    assert first["share"]["url"] == "http://testserver/"
    assert first["likeCount"] == 3
    assert second["streamUrl"] == "https://www.youtube.com/watch?v=abc"
    assert second["posterUrl"] is None
    assert second["bookPath"] is None


def test_feed_backend_failure_is_bad_gateway(client, backend):
    backend.fail_fetch = True
    response = client.get("/feed")
    assert response.status_code == 502


def test_like_is_proxied(client, backend):
    response = client.post("/feed/A/like", params={"liked": "false"})
    assert response.status_code == 200
    assert response.json() == {"videoId": "A", "liked": False, "ok": True}
    assert backend.like_calls == [("A", False)]


def test_like_failure_is_bad_gateway(client, backend):
    backend.like_results = [False]
    assert client.post("/feed/A/like").status_code == 502


def test_activation_uses_feed_policy(client):
    body = {"entries": [{"id": "A", "ratio": 0.7}, {"id": "B", "ratio": 0.7}], "current": None}
    assert client.post("/feed/activation", json=body).json() == {"activeId": "B"}


def test_activation_keeps_current_when_nothing_qualifies(client):
    body = {"entries": [{"id": "B", "ratio": 0.3}], "current": "A"}
    assert client.post("/feed/activation", json=body).json() == {"activeId": "A"}


def test_activation_rejects_invalid_ratio(client):
    body = {"entries": [{"id": "B", "ratio": 1.5}]}
    assert client.post("/feed/activation", json=body).status_code == 422


def test_index_serves_feed_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "/feed/activation" in response.text


def test_feed_with_unexpected_payload_is_bad_gateway(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=5))
    app.dependency_overrides[get_client] = lambda: ExploreClient(settings, transport=transport)
    try:
        with TestClient(app) as test_client:
            assert test_client.get("/feed").status_code == 502
    finally:
        app.dependency_overrides.clear()


def test_like_rejected_upstream_is_bad_gateway(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    app.dependency_overrides[get_client] = lambda: ExploreClient(settings, transport=transport)
    try:
        with TestClient(app) as test_client:
            response = test_client.post("/feed/missing/like")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 502


def test_activation_without_winner_or_current_returns_none(client):
    body = {"entries": [{"id": "B", "ratio": 0.2}]}
    assert client.post("/feed/activation", json=body).json() == {"activeId": None}


def test_feed_page_drops_stale_activations_and_debounces_taps(client):
    page = client.get("/").text
    assert "seq < appliedSeq" in page
    assert "clearTimeout(tapTimer)" in page
    assert "const TAP_MS = 250;" in page
