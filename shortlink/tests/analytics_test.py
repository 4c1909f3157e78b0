from datetime import datetime, timedelta, timezone

import pytest

from shortlink.core.errors import LinkNotFound, StoreError
from shortlink.db import repository
from shortlink.db.Models.models import ClickEvent
from shortlink.services.Analytics import LinkAnalytics, PERIOD_ALL, PERIOD_FILTERED, count_by

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def add_click(db_session):
    def _add_click(link, at=T0, country="DE", device_type="desktop", source="direct"):
        event = ClickEvent(
            link_id=link.id,
            short_code=link.short_code,
            long_url=link.long_url,
            country=country,
            device_type=device_type,
            source=source,
            timestamp=at,
        )
        event = repository.append_click_event(db_session, event)
        if at is None:
            # legacy rows without a timestamp; the column default fills None on insert
            db_session.query(ClickEvent).filter(ClickEvent.id == event.id).update({ClickEvent.timestamp: None})
            db_session.commit()
        return event
    return _add_click


def test_summarize_unknown_code(db_session):
    with pytest.raises(LinkNotFound):
        LinkAnalytics.summarize(db_session, "missing")


def test_summarize_breakdowns_keep_first_seen_order(db_session, make_link, add_click):
    link = make_link()
    add_click(link, T0, country="FR", device_type="mobile", source="qr")
    add_click(link, T0 + timedelta(hours=1), country="DE", device_type="desktop", source="direct")
    add_click(link, T0 + timedelta(hours=2), country="DE", device_type="desktop", source="direct")
    add_click(link, T0 + timedelta(hours=3), country=None, device_type="tablet", source=None)

    stats = LinkAnalytics.summarize(db_session, "  ABC123 ")

    assert stats.url_id == link.id
    assert stats.total_clicks == 4
    assert stats.period == PERIOD_ALL
    assert stats.first_click == T0
    assert stats.last_click == T0 + timedelta(hours=3)
    assert [(c.country, c.count) for c in stats.countries] == [("FR", 1), ("DE", 2), ("UNKNOWN", 1)]
    assert [(d.device_type, d.count) for d in stats.devices] == [("mobile", 1), ("desktop", 2), ("tablet", 1)]
    assert [(s.source, s.count) for s in stats.sources] == [("qr", 1), ("direct", 2), ("UNKNOWN", 1)]


def test_summarize_falls_back_to_hit_count(db_session, make_link):
    make_link(hit_count=42)
    stats = LinkAnalytics.summarize(db_session, "abc123")
    assert stats.total_clicks == 42
    assert stats.first_click is None
    assert stats.countries == []


def test_summarize_window_is_inclusive(db_session, make_link, add_click):
    link = make_link()
    for hours in range(5):
        add_click(link, T0 + timedelta(hours=hours))

    stats = LinkAnalytics.summarize(db_session, "abc123", T0 + timedelta(hours=1), T0 + timedelta(hours=3))

    assert stats.total_clicks == 3
    assert stats.period == PERIOD_FILTERED
    assert stats.first_click == T0 + timedelta(hours=1)
    assert stats.last_click == T0 + timedelta(hours=3)


def test_summarize_window_outside_all_events(db_session, make_link, add_click):
    link = make_link()
    add_click(link, T0)
    add_click(link, T0 + timedelta(days=1))

    later = T0 + timedelta(days=30)
    stats = LinkAnalytics.summarize(db_session, "abc123", later, later + timedelta(days=1))

    assert stats.total_clicks == 0
    assert stats.first_click is None and stats.last_click is None
    assert stats.countries == [] and stats.devices == [] and stats.sources == []


def test_summarize_window_outside_events_ignores_hit_count(db_session, make_link, add_click):
    link = make_link(hit_count=5)
    add_click(link, T0)

    later = T0 + timedelta(days=30)
    stats = LinkAnalytics.summarize(db_session, "abc123", later, later + timedelta(days=1))

    assert stats.total_clicks == 0
    assert stats.first_click is None


def test_summarize_window_on_link_without_events_uses_hit_count(db_session, make_link):
    make_link(hit_count=5)
    later = T0 + timedelta(days=30)
    assert LinkAnalytics.summarize(db_session, "abc123", later).total_clicks == 5


def test_summarize_first_and_last_skip_missing_timestamps(db_session, make_link, add_click):
    link = make_link()
    add_click(link, None)
    add_click(link, T0 + timedelta(hours=2))
    add_click(link, T0)

    stats = LinkAnalytics.summarize(db_session, "abc123")

    assert stats.total_clicks == 3
    assert stats.first_click == T0
    assert stats.last_click == T0 + timedelta(hours=2)
    assert repository.list_click_events(db_session, link.id)[-1].timestamp is None


def test_summarize_window_drops_events_without_timestamp(db_session, make_link, add_click):
    link = make_link()
    add_click(link, T0)
    add_click(link, None)

    assert LinkAnalytics.summarize(db_session, "abc123").total_clicks == 2
    assert LinkAnalytics.summarize(db_session, "abc123", start=T0 - timedelta(days=1)).total_clicks == 1


def test_summarize_accepts_naive_bounds_as_utc(db_session, make_link, add_click):
    link = make_link()
    add_click(link, T0)
    stats = LinkAnalytics.summarize(db_session, "abc123", end=datetime(2024, 5, 1, 12, 0))
    assert stats.total_clicks == 1


def test_summarize_does_not_mutate(db_session, make_link, add_click):
    link = make_link(hit_count=3)
    add_click(link, T0)
    LinkAnalytics.summarize(db_session, "abc123")
    db_session.expire_all()
    assert repository.find_link_by_id(db_session, link.id).hit_count == 3
    assert len(repository.list_click_events(db_session, link.id)) == 1


def test_count_by_buckets_missing_values():
    events = [ClickEvent(country="US"), ClickEvent(country=""), ClickEvent(country="US")]
    assert count_by(events, "country") == [("US", 2), ("UNKNOWN", 1)]


def test_build_summary_mentions_totals(db_session, make_link, add_click):
    link = make_link()
    add_click(link, T0, country="AT", device_type="mobile")
    summary = LinkAnalytics.build_summary(LinkAnalytics.summarize(db_session, "abc123"))
    assert "abc123" in summary
    assert "1 time(s)" in summary
    assert "AT" in summary and "mobile" in summary


# --- API ---

def test_summary_endpoint(client, make_link, add_click):
    link = make_link()
    add_click(link, T0, country="DE", device_type="mobile", source="newsletter")

    response = client.post("/analysis/abc123/summary")
    assert response.status_code == 200
    data = response.json()
    assert data["shortId"] == "abc123"
    assert "abc123" in data["summary"]
    stats = data["stats"]
    assert stats["urlId"] == link.id
    assert stats["shortCode"] == "abc123"
    assert stats["longUrl"] == "https://example.com"
    assert stats["totalClicks"] == 1
    assert stats["period"] == PERIOD_ALL
    assert stats["firstClick"].startswith("2024-05-01T12:00:00")
    assert stats["countries"] == [{"country": "DE", "count": 1}]
    assert stats["devices"] == [{"deviceType": "mobile", "count": 1}]
    assert stats["sources"] == [{"source": "newsletter", "count": 1}]


def test_summary_endpoint_with_window(client, make_link, add_click):
    link = make_link()
    add_click(link, T0)
    add_click(link, T0 + timedelta(days=2))

    response = client.post(
        "/analysis/abc123/summary",
        json={"from": "2024-05-02T00:00:00Z", "to": "2024-05-04T00:00:00Z"},
    )
    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["totalClicks"] == 1
    assert stats["period"] == PERIOD_FILTERED
    assert stats["firstClick"].startswith("2024-05-03T12:00:00")


def test_summary_endpoint_rejects_bad_dates(client, make_link):
    make_link()
    response = client.post("/analysis/abc123/summary", json={"from": "yesterday-ish"})
    assert response.status_code == 422


def test_summary_endpoint_not_found(client):
    response = client.post("/analysis/missing/summary")
    assert response.status_code == 404


def test_summary_endpoint_store_failure(client, make_link, monkeypatch):
    make_link()

    def boom(*args, **kwargs):
        raise StoreError("store down")

    monkeypatch.setattr(repository, "list_click_events", boom)
    response = client.post("/analysis/abc123/summary")
    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to generate analysis"}


def test_redirect_then_summarize(client):
    """Create a link, follow it, and see the click in the analysis."""
    client.post("/api/links", json={"longUrl": "https://example.com", "alias": "abc123"})

    response = client.get("/abc123", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"

    stats = client.post("/analysis/abc123/summary").json()["stats"]
    assert stats["totalClicks"] >= 1
    assert stats["devices"][0]["deviceType"] == "desktop"
