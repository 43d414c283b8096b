from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_RATING = 1
MAX_RATING = 5


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Coordinate(BaseModel):
    """A WGS84 position in decimal degrees."""
    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude.")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude.")


class CampsiteCategory(str, Enum):
    BUSH_CAMPING = "Bush Camping"
    CARAVAN_PARK = "Caravan Park"
    FREE_CAMPING = "Free Camping"
    NATIONAL_PARK = "National Park"
    PRIVATE_PROPERTY = "Private Property"
    OTHER = "Other"


class CampingType(str, Enum):
    TENT = "Tent"
    CARAVAN = "Caravan"
    MOTORHOME = "Motorhome"
    CABIN = "Cabin"
    GLAMPING = "Glamping"
    HAMMOCK = "Hammock"
    BIVOUAC = "Bivouac"
    OTHER = "Other"


class CellReceptionLevel(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    NONE = "None"
    UNKNOWN = "Unknown"


class Season(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    AUTUMN = "Autumn"
    WINTER = "Winter"


class Amenity(str, Enum):
    """Amenity flags, keyed by the Campsite attribute that stores them."""
    WATER = "has_water"
    ELECTRICITY = "has_electricity"
    TOILETS = "has_toilets"
    SHOWERS = "has_showers"
    FIRE_PIT = "has_fire_pit"
    BBQ = "has_bbq"
    PARKING = "has_parking"

    @property
    def label(self) -> str:
        return AMENITY_LABELS[self]


AMENITY_LABELS = {
    Amenity.WATER: "Water",
    Amenity.ELECTRICITY: "Electricity",
    Amenity.TOILETS: "Toilets",
    Amenity.SHOWERS: "Showers",
    Amenity.FIRE_PIT: "Fire Pit",
    Amenity.BBQ: "BBQ",
    Amenity.PARKING: "Parking",
}


class Campsite(BaseModel):
    """A user-recorded camping location.

    ``id`` and ``date_added`` are fixed once the record exists. ``rating`` is
    clamped into 1..5 whenever it is set. Optional contact and medical fields
    left as ``None`` mean "unknown".
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id, frozen=True, description="Opaque unique identifier.")
    date_added: datetime = Field(default_factory=_utcnow, frozen=True, description="Creation time (UTC).")

    name: str = Field(..., description="Display name.")
    address: str = Field("", description="Free-text address.")
    location: Coordinate
    notes: str = ""
    rating: int = Field(3, description="Star rating, 1-5.")
    category: CampsiteCategory = CampsiteCategory.BUSH_CAMPING
    camping_type: CampingType = CampingType.TENT
    cell_reception: CellReceptionLevel = CellReceptionLevel.UNKNOWN
    season_availability: Set[Season] = Field(default_factory=set)
    photos: List[str] = Field(default_factory=list, description="Stored photo paths.")

    has_water: bool = False
    has_electricity: bool = False
    has_toilets: bool = False
    has_showers: bool = False
    has_fire_pit: bool = False
    has_bbq: bool = False
    has_parking: bool = False

    is_accessible: bool = False
    accessibility_notes: str = ""

    emergency_contact: Optional[str] = None
    nearest_hospital: Optional[str] = None
    nearest_police: Optional[str] = None
    emergency_notes: str = ""

    phone: Optional[str] = None
    website: Optional[str] = None
    cost: Optional[str] = None
    max_occupancy: Optional[int] = None

    @field_validator("rating", mode="before")
    @classmethod
    def clamp_rating(cls, value):
        # Coerce first so "7" and 4.0 behave like their int values
        try:
            rating = int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError("Rating must be a number") from e
        return max(MIN_RATING, min(MAX_RATING, rating))

    def amenities(self) -> Set[Amenity]:
        return {amenity for amenity in Amenity if getattr(self, amenity.value)}

    def has_emergency_info(self) -> bool:
        return (
            self.emergency_contact is not None
            or self.nearest_hospital is not None
            or self.nearest_police is not None
            or bool(self.emergency_notes)
        )
