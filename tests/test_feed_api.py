"""HTTP-level tests for the feed ranking API."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from feed_api.config import settings
from feed_api.main import app
from feed_api.ranking.models import RemoteRanking
from feed_api.routers.feed import get_remote_ranker

client = TestClient(app)


def _post(post_id: str, likes: int = 0, age_hours: float = 1.0) -> dict:
    now = datetime.now(UTC)
    return {
        "post_id": post_id,
        "user_id": f"author-{post_id}",
        "content": f"notes on {post_id} for the home feed",
        "created_at": (now - timedelta(hours=age_hours)).isoformat(),
        "author": {
            "user_id": f"author-{post_id}",
            "created_at": (now - timedelta(days=365)).isoformat(),
            "follower_count": 10,
        },
        "counts": {"likes": likes, "replies": 0, "reposts": 0, "saves": 0},
    }


@pytest.fixture
def remote_order():
    """Override the remote ranker with a fixed answer for one test."""
    def _install(order):
        async def ranker(candidates):
            return RemoteRanking(ordered_post_ids=order) if order is not None else None
        app.dependency_overrides[get_remote_ranker] = lambda: ranker

    yield _install
    app.dependency_overrides.pop(get_remote_ranker, None)


def test_healthcheck():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_weights_endpoint_exposes_scoring_config():
    response = client.get("/feed/weights")
    assert response.status_code == 200
    body = response.json()
    assert body["freshness_half_life_hours"] == settings.scoring.freshness_half_life_hours
    assert body["repost_weight"] == settings.scoring.repost_weight


def test_rank_without_remote_uses_local_order():
    posts = [_post("low", likes=1), _post("high", likes=30), _post("mid", likes=8)]
    response = client.post("/feed/rank", json={"posts": posts})
    assert response.status_code == 200
    body = response.json()
    assert [p["post_id"] for p in body["posts"]] == ["high", "mid", "low"]
    assert body["remote_applied"] is False
    assert body["breakdowns"] is None


def test_rank_with_remote_order(remote_order):
    remote_order(["low"])
    posts = [_post("low", likes=1), _post("high", likes=30), _post("mid", likes=8)]
    body = client.post("/feed/rank", json={"posts": posts}).json()
    assert [p["post_id"] for p in body["posts"]] == ["low", "high", "mid"]
    assert body["remote_applied"] is True


def test_rank_with_absent_remote(remote_order):
    remote_order(None)
    posts = [_post("a", likes=1), _post("b", likes=2)]
    body = client.post("/feed/rank", json={"posts": posts}).json()
    assert [p["post_id"] for p in body["posts"]] == ["b", "a"]
    assert body["remote_applied"] is False


def test_explain_returns_breakdowns():
    posts = [_post("a", likes=1), _post("b", likes=2)]
    body = client.post("/feed/rank", params={"explain": True}, json={"posts": posts}).json()
    assert set(body["breakdowns"]) == {"a", "b"}
    assert body["breakdowns"]["b"]["engagement"] == pytest.approx(2.0)


def test_explain_includes_engagement_snapshots():
    posts = [_post("a", likes=1), _post("b", likes=2)]
    posts[1]["liked_by"] = ["u1", "u1"]
    body = client.post("/feed/rank", params={"explain": True}, json={"posts": posts}).json()
    assert set(body["engagement"]) == {"a", "b"}
    assert body["engagement"]["b"] == {
        "likes": 2, "replies": 0, "reposts": 0, "saves": 0, "unique_engagers": 1,
    }
    assert body["engagement"]["a"]["unique_engagers"] == 1


def test_explain_reports_content_penalties():
    posts = [_post("a", likes=1), _post("b", likes=1)]
    posts[0]["content"] = "#ai #ml #rust"
    body = client.post("/feed/rank", params={"explain": True}, json={"posts": posts}).json()
    assert body["breakdowns"]["a"]["moderation_notes"] == ["short_content", "tag_heavy"]
    assert body["breakdowns"]["b"]["moderation_notes"] == []
    assert [p["post_id"] for p in body["posts"]] == ["b", "a"]


def test_engagement_omitted_without_explain():
    posts = [_post("a", likes=1), _post("b", likes=2)]
    assert client.post("/feed/rank", json={"posts": posts}).json()["engagement"] is None


def test_counts_beyond_float_range_still_rank():
    huge = int("9" * 400)
    posts = [_post("small", likes=1), _post("huge", likes=huge)]
    response = client.post("/feed/rank", json={"posts": posts})
    assert response.status_code == 200
    body = response.json()
    assert [p["post_id"] for p in body["posts"]] == ["huge", "small"]
    assert body["posts"][0]["counts"]["likes"] == huge


def test_empty_and_single_pass_through():
    assert client.post("/feed/rank", json={"posts": []}).json()["posts"] == []
    single = client.post("/feed/rank", json={"posts": [_post("solo")]}).json()
    assert [p["post_id"] for p in single["posts"]] == ["solo"]


def test_duplicate_ids_are_rejected():
    posts = [_post("same"), _post("same")]
    response = client.post("/feed/rank", json={"posts": posts})
    assert response.status_code == 422
    assert "same" in response.json()["detail"]


def test_too_many_posts_are_rejected(monkeypatch):
    monkeypatch.setattr(settings, "max_rank_candidates", 2)
    posts = [_post("a"), _post("b"), _post("c")]
    response = client.post("/feed/rank", json={"posts": posts})
    assert response.status_code == 422


def test_invalid_body_is_rejected():
    response = client.post("/feed/rank", json={"posts": [{"post_id": "x"}]})
    assert response.status_code == 422


def test_metrics_endpoint():
    client.post("/feed/rank", json={"posts": [_post("a", likes=1), _post("b")]})
    response = client.get("/metrics/")
    assert response.status_code == 200
    assert "feed_rank_outcome_total" in response.text
