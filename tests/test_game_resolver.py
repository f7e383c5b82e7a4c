"""
Tests for materializing local game rows from Steam details
"""
import pytest

from conftest import steam_payload
from gamehub.services.catalog_import import CatalogCache, CatalogImporter
from gamehub.services.catalog_store import CatalogEntry
from gamehub.services.game_resolver import GameResolver, game_fields_from_payload
from gamehub.services.steam_client import UpstreamMalformed


class TestGameFieldsFromPayload:
    def test_paid_game(self):
        fields = game_fields_from_payload(10, steam_payload("A"))
        assert fields["name"] == "A"
        assert fields["image"] == "https://cdn.example/A.jpg"
        assert fields["is_free"] is False
        assert fields["price_final"] == 999
        assert fields["price_overview"]["currency"] == "USD"
        assert fields["platforms"] == {"windows": True, "mac": False, "linux": True}

    def test_zero_final_price_is_free(self):
        payload = steam_payload(price_overview={"currency": "USD", "initial": 999, "final": 0})
        fields = game_fields_from_payload(10, payload)
        assert fields["is_free"] is True
        assert fields["price_final"] == 0

    def test_image_falls_back_to_first_screenshot(self):
        fields = game_fields_from_payload(10, steam_payload(header_image=None))
        assert fields["image"] == "https://cdn.example/shot0.jpg"

    def test_adult_flag(self):
        fields = game_fields_from_payload(10, steam_payload(required_age=18))
        assert fields["age_restricted"] is True

    def test_missing_name_uses_placeholder(self):
        fields = game_fields_from_payload(10, steam_payload(name=""))
        assert fields["name"] == "App 10"


class TestGameResolver:
    def test_creates_row_once(self, fake_steam, store):
        fake_steam.details[10] = steam_payload("A")
        resolver = GameResolver(fake_steam)

        first = resolver.ensure(store, 10)
        second = resolver.ensure(store, 10)

        assert first.id == second.id
        assert first.steam_app_id == 10
        assert store.count() == 1
        assert fake_steam.count("get_app_details") == 1

    def test_unknown_app_returns_none(self, fake_steam, store):
        resolver = GameResolver(fake_steam)
        assert resolver.ensure(store, 99) is None
        assert store.count() == 0

    def test_upstream_error_propagates(self, fake_steam, store):
        fake_steam.details[10] = UpstreamMalformed("garbage")
        resolver = GameResolver(fake_steam)
        with pytest.raises(UpstreamMalformed):
            resolver.ensure(store, 10)

    def test_existing_catalog_row_is_reused(self, fake_steam, store):
        store.upsert_many([CatalogEntry(10, "A")])
        resolver = GameResolver(fake_steam)

        game = resolver.ensure(store, 10)

        assert game.name == "A"
        assert fake_steam.count("get_app_details") == 0

    def test_creation_invalidates_catalog_cache(self, fake_steam, store, clock):
        store.upsert_many([CatalogEntry(10, "A")])
        catalog_cache = CatalogCache(CatalogImporter(fake_steam), ttl=86400, clock=clock)
        assert len(catalog_cache.get_or_load(store)) == 1

        fake_steam.details[20] = steam_payload("B")
        GameResolver(fake_steam, catalog_cache=catalog_cache).ensure(store, 20)

        assert len(catalog_cache.get_or_load(store)) == 2


class TestMalformedGamePayloads:
    def test_wrong_type_price_is_upstream_malformed(self, fake_steam, store):
        fake_steam.details[10] = steam_payload(price_overview={"currency": 1, "final": 999})
        resolver = GameResolver(fake_steam)

        with pytest.raises(UpstreamMalformed):
            resolver.ensure(store, 10)
        assert store.count() == 0

    def test_wrong_type_fields_fall_back(self):
        payload = steam_payload(header_image=["x"], categories=True, platforms="windows")
        payload["name"] = 5

        fields = game_fields_from_payload(10, payload)

        assert fields["name"] == "App 10"
        assert fields["image"] == "https://cdn.example/shot0.jpg"
        assert fields["age_restricted"] is False
        assert fields["platforms"] is None
