"""
Unit tests for CampsiteStore.
"""

import json
from datetime import datetime, timezone
import pytest

from handsup.models.campsite import CampsiteCategory, CampingType, CellReceptionLevel, Coordinate, Season
from handsup.services.campsite_store import CampsiteNotFoundError, CampsiteStore, SortOption, sort_campsites
from handsup.utils.haversine import haversine


@pytest.fixture
def store(kv):
    return CampsiteStore(kv)


async def _fill(store, *campsites):
    return [await store.add(c) for c in campsites]


class TestCrud:

    @pytest.mark.asyncio
    async def test_add_assigns_fresh_identity(self, store, make_campsite):
        original = make_campsite()
        stored = await store.add(original)
        assert stored.id != original.id
        assert stored.date_added >= original.date_added
        assert store.campsites == (stored,)

    @pytest.mark.asyncio
    async def test_adding_the_same_record_twice_gives_two_ids(self, store, make_campsite):
        campsite = make_campsite()
        first = await store.add(campsite)
        second = await store.add(campsite)
        assert first.id != second.id
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_add_then_remove_restores_size(self, store, make_campsite, jervis_bay):
        await store.add(jervis_bay)
        before = len(store)
        stored = await store.add(make_campsite())
        assert await store.remove(stored.id) == 1
        assert len(store) == before

    @pytest.mark.asyncio
    async def test_remove_unknown_id_is_noop(self, store, make_campsite):
        await store.add(make_campsite())
        assert await store.remove("missing") == 0
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_remove_at(self, store, make_campsite, jervis_bay, kosciuszko):
        a, b, c = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert await store.remove_at(0, 2, 99) == 2
        assert store.campsites == (b,)

    @pytest.mark.asyncio
    async def test_update_replaces_in_place(self, store, make_campsite, jervis_bay):
        first, second = await _fill(store, make_campsite(), jervis_bay)
        changed = first.model_copy(update={"notes": "Track closed after rain"})
        await store.update(changed)
        assert store.campsites[0].notes == "Track closed after rain"
        assert store.campsites[1] == second

    @pytest.mark.asyncio
    async def test_update_missing_raises_and_writes_nothing(self, store, kv, make_campsite):
        await store.add(make_campsite())
        blob = kv.store[store.key]
        with pytest.raises(CampsiteNotFoundError):
            await store.update(make_campsite())
        assert kv.store[store.key] == blob

    @pytest.mark.asyncio
    async def test_snapshots_do_not_change_after_mutation(self, store, make_campsite):
        await store.add(make_campsite())
        snapshot = store.campsites
        await store.add(make_campsite())
        assert len(snapshot) == 1
        assert len(store.campsites) == 2


class TestPersistence:

    @pytest.mark.asyncio
    async def test_every_mutation_persists_whole_collection(self, store, kv, make_campsite, jervis_bay):
        first, second = await _fill(store, make_campsite(), jervis_bay)
        assert [c["id"] for c in json.loads(kv.store["SavedCampsites"])] == [first.id, second.id]

        await store.remove(first.id)
        assert [c["id"] for c in json.loads(kv.store["SavedCampsites"])] == [second.id]

    @pytest.mark.asyncio
    async def test_reload_restores_collection(self, store, kv, make_campsite, jervis_bay):
        saved = await _fill(store, make_campsite(), jervis_bay)
        reloaded = CampsiteStore(kv)
        await reloaded.load()
        assert list(reloaded.campsites) == saved

    @pytest.mark.asyncio
    async def test_undecodable_blob_loads_empty(self, kv):
        kv.store["SavedCampsites"] = "{not json"
        store = CampsiteStore(kv)
        assert await store.load() == ()

    @pytest.mark.asyncio
    async def test_missing_key_loads_empty(self, store):
        assert await store.load() == ()

    @pytest.mark.asyncio
    async def test_save_failure_is_swallowed(self, failing_kv, make_campsite):
        store = CampsiteStore(failing_kv)
        stored = await store.add(make_campsite())
        assert store.campsites == (stored,)
        assert "SavedCampsites" not in failing_kv.store

    @pytest.mark.asyncio
    async def test_subscribers_receive_new_snapshot(self, store, make_campsite):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        stored = await store.add(make_campsite())
        unsubscribe()
        await store.remove(stored.id)
        assert seen == [(stored,)]

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_mutation(self, store, make_campsite):
        def explode(snapshot):
            raise RuntimeError("boom")
        store.subscribe(explode)
        await store.add(make_campsite())
        assert len(store) == 1


class TestQueries:

    @pytest.mark.asyncio
    async def test_empty_search_returns_everything_in_order(self, store, make_campsite, jervis_bay, kosciuszko):
        saved = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.search("") == saved

    @pytest.mark.asyncio
    async def test_search_fields(self, store, make_campsite, jervis_bay, kosciuszko):
        blue, jervis, kosci = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.search("JERVIS") == [jervis]           # name
        assert store.search("alpine views") == [kosci]      # notes
        assert store.search("caravan park") == [jervis]     # category label
        assert store.search("nsw") == [blue, jervis, kosci] # address
        assert store.search("desert") == []

    @pytest.mark.asyncio
    async def test_filter_by_category(self, store, make_campsite, jervis_bay, kosciuszko):
        saved = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.filter_by_category(None) == saved
        assert store.filter_by_category(CampsiteCategory.NATIONAL_PARK) == [saved[2]]
        assert store.filter_by_category(CampsiteCategory.OTHER) == []

    @pytest.mark.asyncio
    async def test_filter_by_amenities_ands_given_flags(self, store, make_campsite, jervis_bay, kosciuszko):
        blue, jervis, kosci = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.filter_by_amenities() == [blue, jervis, kosci]
        assert store.filter_by_amenities(has_fire_pit=True) == [blue]
        assert store.filter_by_amenities(has_water=True, has_showers=True) == [jervis]
        assert store.filter_by_amenities(has_fire_pit=False, has_bbq=False) == [kosci]

    @pytest.mark.asyncio
    async def test_attribute_filters(self, store, make_campsite, jervis_bay, kosciuszko):
        blue, jervis, kosci = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.filter_by_accessibility(True) == [jervis]
        assert store.accessible() == [jervis]
        assert store.filter_by_accessibility(False) == [blue, kosci]
        assert store.filter_by_cell_reception(CellReceptionLevel.POOR) == [kosci]
        assert store.filter_by_camping_type(CampingType.CARAVAN) == [jervis]
        assert store.filter_by_season(Season.WINTER) == [jervis]
        assert store.filter_by_season(Season.SUMMER) == [blue, jervis, kosci]

    @pytest.mark.asyncio
    async def test_cost_and_emergency_filters(self, store, make_campsite, jervis_bay, kosciuszko):
        blue, jervis, kosci = await _fill(store, make_campsite(), jervis_bay, kosciuszko)
        assert store.filter_by_cost(True) == [blue, kosci]
        assert store.filter_by_cost(False) == [jervis]
        assert store.filter_by_cost(None) == [blue, jervis, kosci]
        assert store.with_emergency_info() == [blue, jervis]

    @pytest.mark.asyncio
    async def test_nearby_scenario(self, store, make_campsite):
        stored = await store.add(make_campsite())
        assert store.nearby(Coordinate(latitude=-33.70, longitude=150.30), 50) == [stored]
        assert store.nearby(Coordinate(latitude=-38.0, longitude=145.0), 50) == []

    @pytest.mark.asyncio
    async def test_nearby_boundary_is_inclusive(self, store, make_campsite):
        stored = await store.add(make_campsite())
        origin = Coordinate(latitude=-34.0, longitude=150.0)
        exact = haversine(origin.latitude, origin.longitude, stored.location.latitude, stored.location.longitude)
        assert store.nearby(origin, exact) == [stored]
        assert store.nearby(origin, exact - 0.001) == []

    @pytest.mark.asyncio
    async def test_nearby_default_radius_is_50km(self, store, make_campsite):
        await store.add(make_campsite())
        # Roughly 45 km and 67 km north of the camp
        assert len(store.nearby(Coordinate(latitude=-33.31, longitude=150.3119))) == 1
        assert store.nearby(Coordinate(latitude=-33.11, longitude=150.3119)) == []

    @pytest.mark.asyncio
    async def test_nearby_resources_ranked_by_rating(self, store, make_campsite):
        low = await store.add(make_campsite(name="Low", rating=2))
        high = await store.add(make_campsite(name="High", rating=5))
        far = await store.add(make_campsite(name="Far", rating=5, location=Coordinate(latitude=-38.0, longitude=145.0)))
        ranked = store.nearby_resources(Coordinate(latitude=-33.70, longitude=150.30), limit=3)
        assert [c for _, c in ranked] == [high, low]
        assert far not in [c for _, c in ranked]


class TestSorting:

    def test_sort_options(self, make_campsite, jervis_bay, kosciuszko):
        blue = make_campsite(date_added=datetime(2025, 1, 1, tzinfo=timezone.utc))
        jervis = jervis_bay.model_copy(update={"date_added": datetime(2025, 3, 1, tzinfo=timezone.utc)})
        kosci = kosciuszko.model_copy(update={"date_added": datetime(2025, 2, 1, tzinfo=timezone.utc)})
        campsites = [kosci, blue, jervis]
        assert sort_campsites(campsites, SortOption.NAME) == [blue, jervis, kosci]
        assert sort_campsites(campsites, SortOption.DATE_ADDED) == [jervis, kosci, blue]
        assert sort_campsites(campsites, SortOption.RATING)[0] == jervis
        assert sort_campsites(campsites, SortOption.CATEGORY) == [blue, jervis, kosci]
