"""
Tests for per-app detail caching and the featured summary
"""
import pytest

from conftest import steam_payload
from gamehub.services.steam_client import UpstreamMalformed, UpstreamUnavailable
from gamehub.services.steam_detail import DetailCache, FeaturedCache, detail_from_payload


class TestDetailFromPayload:
    def test_adult_by_required_age(self):
        record = detail_from_payload(10, steam_payload(required_age="18"))
        assert record.required_age == 18
        assert record.age_restricted is True

    def test_adult_by_category(self):
        payload = steam_payload(categories=[{"description": "Mature Content"}])
        assert detail_from_payload(10, payload).age_restricted is True

    def test_general_audience(self):
        record = detail_from_payload(10, steam_payload())
        assert record.age_restricted is False
        assert record.screenshots == ["https://cdn.example/shot0.jpg"]
        assert record.price_overview.final == 999


class TestDetailCache:
    def test_fresh_record_is_served_without_refetch(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)

        assert cache.get(10).name == "A"
        clock.advance(3599)
        assert cache.get("10").name == "A"
        assert fake_steam.count("get_app_details") == 1

    def test_stale_record_is_refetched(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)
        cache.get(10)

        fake_steam.details[10] = steam_payload("A Remastered")
        clock.advance(3601)
        assert cache.get(10).name == "A Remastered"
        assert fake_steam.count("get_app_details") == 2

    def test_not_found_is_not_cached(self, fake_steam, clock):
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)
        assert cache.get(99) is None
        assert cache.get(99) is None
        assert fake_steam.count("get_app_details") == 2

    @pytest.mark.parametrize(
        "error",
        [UpstreamUnavailable("down", status_code=503), UpstreamMalformed("garbage")],
    )
    def test_upstream_failure_yields_none_and_retries_next_time(self, fake_steam, clock, error):
        fake_steam.details[10] = error
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)
        assert cache.get(10) is None

        fake_steam.details[10] = steam_payload("A")
        assert cache.get(10).name == "A"

    def test_get_many_isolates_partial_failure(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        fake_steam.details[20] = UpstreamUnavailable("down", status_code=503)
        fake_steam.details[30] = steam_payload("C")
        cache = DetailCache(fake_steam, ttl=3600, clock=clock, max_workers=3)

        result = cache.get_many(["10", "20", "30"])

        assert set(result) == {"10", "20", "30"}
        assert result["10"].name == "A"
        assert result["20"] is None
        assert result["30"].name == "C"

    def test_get_many_skips_invalid_and_duplicate_ids(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)

        result = cache.get_many(["10", "010", "abc"])

        assert result == {"10": result["10"], "abc": None}
        assert result["10"].name == "A"
        assert fake_steam.count("get_app_details") == 1

    def test_invalidate(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        cache = DetailCache(fake_steam, ttl=3600, clock=clock)
        cache.get(10)

        assert cache.invalidate("10") is True
        assert cache.invalidate("10") is False
        cache.get(10)
        assert fake_steam.count("get_app_details") == 2


class TestFeaturedCache:
    def test_cached_for_ttl(self, fake_steam, clock):
        fake_steam.featured = []
        cache = FeaturedCache(fake_steam, ttl=300, clock=clock)
        cache.get()
        clock.advance(299)
        cache.get()
        assert fake_steam.count("get_featured_categories") == 1

        clock.advance(2)
        cache.get()
        assert fake_steam.count("get_featured_categories") == 2

    def test_failure_propagates(self, fake_steam, clock):
        fake_steam.featured = UpstreamUnavailable("down", status_code=503)
        cache = FeaturedCache(fake_steam, ttl=300, clock=clock)
        with pytest.raises(UpstreamUnavailable):
            cache.get()


class TestMalformedDetailPayloads:
    @pytest.mark.parametrize("categories", [5, True, "Mature", [1, None, "adult"]])
    def test_wrong_type_categories_are_ignored(self, categories):
        record = detail_from_payload(10, steam_payload(categories=categories))
        assert record.age_restricted is False

    def test_wrong_type_screenshots_are_ignored(self):
        record = detail_from_payload(10, steam_payload(screenshots=7))
        assert record.screenshots == []

    def test_bad_payload_does_not_abort_batch(self, fake_steam, clock):
        fake_steam.details[10] = steam_payload("A")
        fake_steam.details[20] = steam_payload("B", categories=5, screenshots={"0": "x"})
        fake_steam.details[30] = steam_payload("C")
        fake_steam.details[40] = steam_payload(name="D", price_overview={"currency": 1, "final": 100})
        cache = DetailCache(fake_steam, ttl=3600, clock=clock, max_workers=4)

        result = cache.get_many(["10", "20", "30", "40"])

        assert result["10"].name == "A"
        assert result["20"].name == "B"
        assert result["20"].age_restricted is False
        assert result["30"].name == "C"
        assert result["40"] is None
