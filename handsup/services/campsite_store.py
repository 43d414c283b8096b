# handsup/services/campsite_store.py
# In-memory campsite collection persisted as one JSON blob in a key-value store

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

import structlog
from pydantic import TypeAdapter, ValidationError

from handsup.models.campsite import (
    Amenity,
    Campsite,
    CampsiteCategory,
    CampingType,
    CellReceptionLevel,
    Coordinate,
    Season,
)
from handsup.services.kv_store import KeyValueStore, PersistenceError
from handsup.utils.haversine import haversine

logger = structlog.get_logger(__name__)

_campsite_list = TypeAdapter(List[Campsite])

Snapshot = Tuple[Campsite, ...]
Subscriber = Callable[[Snapshot], None]


class CampsiteNotFoundError(LookupError):
    def __init__(self, campsite_id: str):
        super().__init__(f"no campsite with id {campsite_id}")
        self.campsite_id = campsite_id


class SortOption(str, Enum):
    NAME = "name"
    DATE_ADDED = "date_added"
    RATING = "rating"
    CATEGORY = "category"


def sort_campsites(campsites: Iterable[Campsite], option: SortOption) -> List[Campsite]:
    """Newest first for dates, highest first for ratings, A-Z otherwise."""
    if option == SortOption.NAME:
        return sorted(campsites, key=lambda c: c.name)
    if option == SortOption.DATE_ADDED:
        return sorted(campsites, key=lambda c: c.date_added, reverse=True)
    if option == SortOption.RATING:
        return sorted(campsites, key=lambda c: c.rating, reverse=True)
    return sorted(campsites, key=lambda c: c.category.value)


class CampsiteStore:
    """Owns the user's campsite records.

    - ``campsites`` is an immutable snapshot; every mutation builds a new one,
      so a snapshot handed out earlier never changes underneath its holder.
    - Every mutation writes the whole collection back under ``key``.
      Storage failures are logged and swallowed: the in-memory state stays
      authoritative for the session.
    - Queries never touch storage.
    """

    def __init__(self, kv: KeyValueStore, key: str = "SavedCampsites"):
        self.kv = kv
        self.key = key
        self._campsites: Snapshot = ()
        self._subscribers: List[Subscriber] = []

    @property
    def campsites(self) -> Snapshot:
        return self._campsites

    def __len__(self) -> int:
        return len(self._campsites)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    async def load(self) -> Snapshot:
        """Replace the in-memory collection with the stored one.

        A missing key, an unreadable store or a blob that does not decode all
        leave the store empty.
        """
        try:
            raw = await self.kv.get(self.key)
        except PersistenceError as e:
            logger.error("campsites_load_failed", key=self.key, error=str(e))
            raw = None

        campsites: List[Campsite] = []
        if raw:
            try:
                campsites = _campsite_list.validate_json(raw)
            except ValidationError as e:
                logger.error("campsites_decode_failed", key=self.key, errors=e.error_count())
                campsites = []

        self._campsites = tuple(campsites)
        logger.info("campsites_loaded", count=len(self._campsites))
        return self._campsites

    async def _commit(self, campsites: Sequence[Campsite]) -> None:
        self._campsites = tuple(campsites)
        try:
            payload = _campsite_list.dump_json(list(self._campsites)).decode("utf-8")
            await self.kv.set(self.key, payload)
        except PersistenceError as e:
            logger.error("campsites_save_failed", key=self.key, error=str(e))
        except (TypeError, ValueError) as e:
            logger.error("campsites_serialize_failed", key=self.key, error=str(e))
        self._notify()

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with the new snapshot after every mutation.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._campsites)
            except Exception:
                logger.exception("campsite_subscriber_failed")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def get(self, campsite_id: str) -> Optional[Campsite]:
        for campsite in self._campsites:
            if campsite.id == campsite_id:
                return campsite
        return None

    async def add(self, campsite: Campsite) -> Campsite:
        """Store a copy of ``campsite`` under a fresh id and creation time."""
        record = campsite.model_copy(
            update={"id": str(uuid4()), "date_added": datetime.now(timezone.utc)},
            deep=True,
        )
        await self._commit(self._campsites + (record,))
        logger.info("campsite_added", campsite_id=record.id)
        return record

    async def update(self, campsite: Campsite) -> Campsite:
        """Replace the record with the same id.

        Raises CampsiteNotFoundError when no record has that id; nothing is
        written in that case.
        """
        for index, existing in enumerate(self._campsites):
            if existing.id == campsite.id:
                updated = list(self._campsites)
                updated[index] = campsite
                await self._commit(updated)
                logger.info("campsite_updated", campsite_id=campsite.id)
                return campsite
        logger.warning("campsite_update_missing", campsite_id=campsite.id)
        raise CampsiteNotFoundError(campsite.id)

    async def remove(self, campsite_id: str) -> int:
        """Delete every record with ``campsite_id``; an unknown id removes nothing."""
        kept = [c for c in self._campsites if c.id != campsite_id]
        removed = len(self._campsites) - len(kept)
        await self._commit(kept)
        if removed:
            logger.info("campsite_removed", campsite_id=campsite_id)
        return removed

    async def remove_at(self, *indexes: int) -> int:
        """Delete the records at the given positions; out-of-range positions are ignored."""
        doomed = {i for i in indexes if 0 <= i < len(self._campsites)}
        kept = [c for i, c in enumerate(self._campsites) if i not in doomed]
        await self._commit(kept)
        return len(doomed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def search(self, query: str) -> List[Campsite]:
        """Case-insensitive substring match on name, notes, category and address."""
        if not query:
            return list(self._campsites)
        needle = query.casefold()
        return [
            c for c in self._campsites
            if needle in c.name.casefold()
            or needle in c.notes.casefold()
            or needle in c.category.value.casefold()
            or needle in c.address.casefold()
        ]

    def filter_by_category(self, category: Optional[CampsiteCategory]) -> List[Campsite]:
        if category is None:
            return list(self._campsites)
        return [c for c in self._campsites if c.category == category]

    def filter_by_amenities(
        self,
        has_water: Optional[bool] = None,
        has_electricity: Optional[bool] = None,
        has_toilets: Optional[bool] = None,
        has_showers: Optional[bool] = None,
        has_fire_pit: Optional[bool] = None,
        has_bbq: Optional[bool] = None,
        has_parking: Optional[bool] = None,
    ) -> List[Campsite]:
        """Every flag that is given must match exactly; flags left as None are ignored."""
        wanted = {
            Amenity.WATER: has_water,
            Amenity.ELECTRICITY: has_electricity,
            Amenity.TOILETS: has_toilets,
            Amenity.SHOWERS: has_showers,
            Amenity.FIRE_PIT: has_fire_pit,
            Amenity.BBQ: has_bbq,
            Amenity.PARKING: has_parking,
        }
        wanted = {amenity: flag for amenity, flag in wanted.items() if flag is not None}
        return [
            c for c in self._campsites
            if all(getattr(c, amenity.value) == flag for amenity, flag in wanted.items())
        ]

    def filter_by_accessibility(self, is_accessible: bool) -> List[Campsite]:
        return [c for c in self._campsites if c.is_accessible == is_accessible]

    def filter_by_cell_reception(self, level: CellReceptionLevel) -> List[Campsite]:
        return [c for c in self._campsites if c.cell_reception == level]

    def filter_by_camping_type(self, camping_type: CampingType) -> List[Campsite]:
        return [c for c in self._campsites if c.camping_type == camping_type]

    def filter_by_season(self, season: Season) -> List[Campsite]:
        return [c for c in self._campsites if season in c.season_availability]

    def filter_by_cost(self, is_free: Optional[bool] = None) -> List[Campsite]:
        """Free means no recorded cost or a cost of exactly "Free"."""
        if is_free is None:
            return list(self._campsites)
        return [c for c in self._campsites if (c.cost is None or c.cost == "Free") == is_free]

    def with_emergency_info(self) -> List[Campsite]:
        return [c for c in self._campsites if c.has_emergency_info()]

    def accessible(self) -> List[Campsite]:
        return self.filter_by_accessibility(True)

    def nearby_with_distance(self, coordinate: Coordinate, radius_km: float = 50.0) -> List[Tuple[float, Campsite]]:
        results: List[Tuple[float, Campsite]] = []
        for campsite in self._campsites:
            distance = haversine(
                coordinate.latitude, coordinate.longitude,
                campsite.location.latitude, campsite.location.longitude,
            )
            if distance <= radius_km:
                results.append((distance, campsite))
        return results

    def nearby(self, coordinate: Coordinate, radius_km: float = 50.0) -> List[Campsite]:
        """Campsites within ``radius_km`` (inclusive), in collection order."""
        return [campsite for _, campsite in self.nearby_with_distance(coordinate, radius_km)]

    def nearby_resources(self, coordinate: Coordinate, radius_km: float = 50.0, limit: int = 3) -> List[Tuple[float, Campsite]]:
        """The best-rated nearby campsites, for a quick emergency summary."""
        ranked = sorted(self.nearby_with_distance(coordinate, radius_km), key=lambda pair: pair[1].rating, reverse=True)
        return ranked[:limit]
