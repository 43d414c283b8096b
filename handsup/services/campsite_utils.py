from typing import Iterable, List, Set

from pydantic import BaseModel, Field

from handsup.models.campsite import (
    MAX_RATING,
    MIN_RATING,
    Amenity,
    Campsite,
    CampsiteCategory,
    CampingType,
    CellReceptionLevel,
    Coordinate,
    Season,
)
from handsup.utils.haversine import haversine


class CampsiteFilterOptions(BaseModel):
    """The filter values that would actually match something in a collection."""
    categories: Set[CampsiteCategory] = Field(default_factory=set)
    camping_types: Set[CampingType] = Field(default_factory=set)
    seasons: Set[Season] = Field(default_factory=set)
    amenities: Set[Amenity] = Field(default_factory=set)
    cell_reception: Set[CellReceptionLevel] = Field(default_factory=set)
    has_accessible_campsites: bool = False


def validate_campsite(campsite: Campsite) -> List[str]:
    """Human-readable problems with a campsite; empty when it is fine to save."""
    errors: List[str] = []

    if not campsite.name.strip():
        errors.append("Campsite name is required")

    if not campsite.address.strip():
        errors.append("Address is required")

    # Only reachable for records built with model_construct
    if campsite.rating < MIN_RATING or campsite.rating > MAX_RATING:
        errors.append(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

    if campsite.max_occupancy is not None and campsite.max_occupancy < 1:
        errors.append("Maximum occupancy must be at least 1")

    return errors


def format_distance_km(distance_km: float) -> str:
    if distance_km < 1:
        return f"{int(distance_km * 1000)}m away"
    if distance_km < 10:
        return f"{distance_km:.1f}km away"
    return f"{distance_km:.0f}km away"


def format_distance(origin: Coordinate, campsite: Campsite) -> str:
    distance = haversine(
        origin.latitude, origin.longitude,
        campsite.location.latitude, campsite.location.longitude,
    )
    return format_distance_km(distance)


def amenity_labels(campsite: Campsite) -> List[str]:
    return [amenity.label for amenity in Amenity if getattr(campsite, amenity.value)]


def accessibility_summary(campsite: Campsite) -> str:
    if campsite.is_accessible:
        return "Wheelchair accessible"
    return "Not wheelchair accessible"


def emergency_info(campsite: Campsite) -> List[str]:
    info: List[str] = []
    if campsite.emergency_contact is not None:
        info.append(f"Emergency: {campsite.emergency_contact}")
    if campsite.nearest_hospital is not None:
        info.append(f"Hospital: {campsite.nearest_hospital}")
    if campsite.nearest_police is not None:
        info.append(f"Police: {campsite.nearest_police}")
    if campsite.emergency_notes:
        info.append(f"Notes: {campsite.emergency_notes}")
    return info


def season_summary(campsite: Campsite) -> str:
    # Calendar order rather than set order
    seasons = [season.value for season in Season if season in campsite.season_availability]
    return f"Available: {', '.join(seasons)}"


def search_suggestions(campsites: Iterable[Campsite]) -> List[str]:
    suggestions = set()
    for campsite in campsites:
        suggestions.add(campsite.name)
        suggestions.add(campsite.category.value)
        suggestions.add(campsite.camping_type.value)
        for component in campsite.address.split(","):
            component = component.strip()
            if len(component) > 2:
                suggestions.add(component)
    return sorted(suggestions)


def filter_options(campsites: Iterable[Campsite]) -> CampsiteFilterOptions:
    options = CampsiteFilterOptions()
    for campsite in campsites:
        options.categories.add(campsite.category)
        options.camping_types.add(campsite.camping_type)
        options.seasons.update(campsite.season_availability)
        options.amenities.update(campsite.amenities())
        options.cell_reception.add(campsite.cell_reception)
        if campsite.is_accessible:
            options.has_accessible_campsites = True
    return options
