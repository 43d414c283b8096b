# handsup/api/routes.py
# HTTP surface over the campsite store, warning aggregator, message templates
# and emergency contact list. Services live on app.state (see handsup.main).

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
import structlog
from typing import List, Optional

from handsup.core.config import settings
from handsup.models.campsite import (
    Amenity,
    Campsite,
    CampsiteCategory,
    CampingType,
    CellReceptionLevel,
    Coordinate,
    Season,
)
from handsup.models.dto import (
    CampsiteList,
    ComposeMessageRequest,
    ComposeMessageResponse,
    ErrorResponse,
    FilterOptionsResponse,
    NearbyCampsite,
    NearbyResourcesResponse,
    WarningSnapshotResponse,
)
from handsup.models.warning import EmergencyWarning
from handsup.services.campsite_store import CampsiteNotFoundError, CampsiteStore, SortOption, sort_campsites
from handsup.services.campsite_utils import filter_options, format_distance_km, search_suggestions, validate_campsite
from handsup.services.contact_list import ContactListError, EmergencyContact, EmergencyContactList
from handsup.services.messages import CAMPING_TEMPLATES, EmergencyTemplate, build_emergency_message, find_template
from handsup.services.warning_aggregator import WarningAggregator

router = APIRouter()
logger = structlog.get_logger(__name__)

# ----------------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------------
def get_campsite_store(request: Request) -> CampsiteStore:
    return request.app.state.campsite_store

def get_warning_aggregator(request: Request) -> WarningAggregator:
    return request.app.state.warning_aggregator

def get_contact_list(request: Request) -> EmergencyContactList:
    return request.app.state.contact_list

def _coordinate(lat: float, lon: float) -> Coordinate:
    return Coordinate(latitude=lat, longitude=lon)

def _error(status_code: int, error: str, detail: str, messages: Optional[List[str]] = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error=error, detail=detail, messages=messages or []).model_dump(),
    )

Latitude = Query(..., ge=-90.0, le=90.0, description="Latitude of the caller.")
Longitude = Query(..., ge=-180.0, le=180.0, description="Longitude of the caller.")

# ----------------------------------------------------------------------
# Campsites
# ----------------------------------------------------------------------
@router.get("/campsites", response_model=CampsiteList)
async def list_campsites(
    q: str = "",
    category: Optional[CampsiteCategory] = None,
    sort: SortOption = SortOption.DATE_ADDED,
    store: CampsiteStore = Depends(get_campsite_store),
):
    """Search text and category narrow the list together; the result is then sorted."""
    matches = store.search(q)
    if category is not None:
        allowed = {c.id for c in store.filter_by_category(category)}
        matches = [c for c in matches if c.id in allowed]
    matches = sort_campsites(matches, sort)
    return CampsiteList(count=len(matches), campsites=matches)

@router.get("/campsites/nearby", response_model=List[NearbyCampsite])
async def nearby_campsites(
    lat: float = Latitude,
    lon: float = Longitude,
    radius_km: float = Query(settings.CAMPSITE_SEARCH_RADIUS_KM, gt=0),
    store: CampsiteStore = Depends(get_campsite_store),
):
    pairs = sorted(store.nearby_with_distance(_coordinate(lat, lon), radius_km), key=lambda pair: pair[0])
    return [
        NearbyCampsite(campsite=campsite, distance_km=round(dist_km, 2), distance_label=format_distance_km(dist_km))
        for dist_km, campsite in pairs
    ]

@router.get("/campsites/filter", response_model=CampsiteList)
async def filter_campsites(
    has_water: Optional[bool] = None,
    has_electricity: Optional[bool] = None,
    has_toilets: Optional[bool] = None,
    has_showers: Optional[bool] = None,
    has_fire_pit: Optional[bool] = None,
    has_bbq: Optional[bool] = None,
    has_parking: Optional[bool] = None,
    is_accessible: Optional[bool] = None,
    cell_reception: Optional[CellReceptionLevel] = None,
    camping_type: Optional[CampingType] = None,
    season: Optional[Season] = None,
    is_free: Optional[bool] = None,
    with_emergency_info: bool = False,
    store: CampsiteStore = Depends(get_campsite_store),
):
    """Every filter that is supplied must hold."""
    selections = [
        store.filter_by_amenities(
            has_water=has_water,
            has_electricity=has_electricity,
            has_toilets=has_toilets,
            has_showers=has_showers,
            has_fire_pit=has_fire_pit,
            has_bbq=has_bbq,
            has_parking=has_parking,
        ),
        store.filter_by_cost(is_free),
    ]
    if is_accessible is not None:
        selections.append(store.filter_by_accessibility(is_accessible))
    if cell_reception is not None:
        selections.append(store.filter_by_cell_reception(cell_reception))
    if camping_type is not None:
        selections.append(store.filter_by_camping_type(camping_type))
    if season is not None:
        selections.append(store.filter_by_season(season))
    if with_emergency_info:
        selections.append(store.with_emergency_info())

    allowed = set.intersection(*({c.id for c in selection} for selection in selections))
    matches = [c for c in store.campsites if c.id in allowed]
    return CampsiteList(count=len(matches), campsites=matches)

@router.get("/campsites/suggestions", response_model=List[str])
async def campsite_suggestions(store: CampsiteStore = Depends(get_campsite_store)):
    return search_suggestions(store.campsites)

@router.get("/campsites/filter-options", response_model=FilterOptionsResponse)
async def campsite_filter_options(store: CampsiteStore = Depends(get_campsite_store)):
    options = filter_options(store.campsites)
    # Declaration order keeps the lists stable for clients
    return FilterOptionsResponse(
        categories=[c.value for c in CampsiteCategory if c in options.categories],
        camping_types=[t.value for t in CampingType if t in options.camping_types],
        seasons=[s.value for s in Season if s in options.seasons],
        amenities=[a.label for a in Amenity if a in options.amenities],
        cell_reception=[r.value for r in CellReceptionLevel if r in options.cell_reception],
        has_accessible_campsites=options.has_accessible_campsites,
    )

@router.get(
    "/campsites/{campsite_id}",
    response_model=Campsite,
    responses={404: {"model": ErrorResponse}},
)
async def get_campsite(campsite_id: str, store: CampsiteStore = Depends(get_campsite_store)):
    campsite = store.get(campsite_id)
    if campsite is None:
        raise _error(status.HTTP_404_NOT_FOUND, "CAMPSITE_NOT_FOUND", f"No campsite with id {campsite_id}.")
    return campsite

@router.post(
    "/campsites",
    response_model=Campsite,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_campsite(campsite: Campsite, store: CampsiteStore = Depends(get_campsite_store)):
    problems = validate_campsite(campsite)
    if problems:
        raise _error(status.HTTP_400_BAD_REQUEST, "INVALID_CAMPSITE", "; ".join(problems), problems)
    return await store.add(campsite)

@router.put(
    "/campsites/{campsite_id}",
    response_model=Campsite,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_campsite(campsite_id: str, campsite: Campsite, store: CampsiteStore = Depends(get_campsite_store)):
    existing = store.get(campsite_id)
    if existing is None:
        raise _error(status.HTTP_404_NOT_FOUND, "CAMPSITE_NOT_FOUND", f"No campsite with id {campsite_id}.")

    # The path decides the identity; creation time never changes
    replacement = campsite.model_copy(update={"id": existing.id, "date_added": existing.date_added})
    problems = validate_campsite(replacement)
    if problems:
        raise _error(status.HTTP_400_BAD_REQUEST, "INVALID_CAMPSITE", "; ".join(problems), problems)
    try:
        return await store.update(replacement)
    except CampsiteNotFoundError:
        # Removed between the lookup and the update
        raise _error(status.HTTP_404_NOT_FOUND, "CAMPSITE_NOT_FOUND", f"No campsite with id {campsite_id}.")

@router.delete("/campsites/{campsite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_campsite(campsite_id: str, store: CampsiteStore = Depends(get_campsite_store)):
    # Deleting an unknown id succeeds without doing anything
    await store.remove(campsite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# ----------------------------------------------------------------------
# Warnings
# ----------------------------------------------------------------------
def _snapshot(aggregator: WarningAggregator, warnings) -> WarningSnapshotResponse:
    return WarningSnapshotResponse(
        warnings=list(warnings),
        last_updated=aggregator.last_updated,
        is_loading=aggregator.is_loading,
        error_message=aggregator.error_message,
    )

@router.get("/warnings", response_model=WarningSnapshotResponse)
async def list_warnings(aggregator: WarningAggregator = Depends(get_warning_aggregator)):
    return _snapshot(aggregator, aggregator.active_warnings)

@router.get("/warnings/near", response_model=WarningSnapshotResponse)
async def warnings_near(
    lat: float = Latitude,
    lon: float = Longitude,
    radius_km: float = Query(settings.WARNING_SEARCH_RADIUS_KM, gt=0),
    aggregator: WarningAggregator = Depends(get_warning_aggregator),
):
    return _snapshot(aggregator, aggregator.warnings_near(_coordinate(lat, lon), radius_km))

@router.get("/warnings/critical", response_model=WarningSnapshotResponse)
async def critical_warnings(aggregator: WarningAggregator = Depends(get_warning_aggregator)):
    return _snapshot(aggregator, aggregator.critical_warnings())

@router.post("/warnings/refresh", response_model=WarningSnapshotResponse)
async def refresh_warnings(aggregator: WarningAggregator = Depends(get_warning_aggregator)):
    """Manual refresh. A failed refresh still answers 200 with the stale snapshot and the error."""
    await aggregator.refresh()
    return _snapshot(aggregator, aggregator.active_warnings)

# ----------------------------------------------------------------------
# Nearby emergency resources
# ----------------------------------------------------------------------
@router.get("/nearby-resources", response_model=NearbyResourcesResponse)
async def nearby_resources(
    lat: float = Latitude,
    lon: float = Longitude,
    store: CampsiteStore = Depends(get_campsite_store),
    aggregator: WarningAggregator = Depends(get_warning_aggregator),
):
    here = _coordinate(lat, lon)
    campsites = [
        NearbyCampsite(campsite=campsite, distance_km=round(dist_km, 2), distance_label=format_distance_km(dist_km))
        for dist_km, campsite in store.nearby_resources(
            here, settings.CAMPSITE_SEARCH_RADIUS_KM, settings.NEARBY_RESOURCES_LIMIT
        )
    ]
    near: List[EmergencyWarning] = aggregator.warnings_near(here, settings.WARNING_SEARCH_RADIUS_KM)
    critical_ids = {w.id for w in aggregator.critical_warnings()}
    return NearbyResourcesResponse(
        location=here,
        campsites=campsites,
        warnings=near,
        critical_warnings=[w for w in near if w.id in critical_ids],
    )

# ----------------------------------------------------------------------
# SOS messages
# ----------------------------------------------------------------------
@router.get("/messages/templates", response_model=List[EmergencyTemplate])
async def message_templates():
    return CAMPING_TEMPLATES

@router.post(
    "/messages/compose",
    response_model=ComposeMessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def compose_message(data: ComposeMessageRequest, contacts: EmergencyContactList = Depends(get_contact_list)):
    template = find_template(data.template_title)
    if template is None:
        raise _error(status.HTTP_404_NOT_FOUND, "TEMPLATE_NOT_FOUND", f"No template titled {data.template_title!r}.")
    message = build_emergency_message(template, data.user_name, data.location)
    return ComposeMessageResponse(message=message, recipients=contacts.phone_numbers())

# ----------------------------------------------------------------------
# Emergency contacts
# ----------------------------------------------------------------------
@router.get("/contacts", response_model=List[EmergencyContact])
async def list_contacts(contacts: EmergencyContactList = Depends(get_contact_list)):
    return list(contacts.contacts)

@router.get("/contacts/phone-numbers", response_model=List[str])
async def contact_phone_numbers(contacts: EmergencyContactList = Depends(get_contact_list)):
    return contacts.phone_numbers()

@router.post(
    "/contacts",
    response_model=EmergencyContact,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def add_contact(contact: EmergencyContact, contacts: EmergencyContactList = Depends(get_contact_list)):
    try:
        return await contacts.add(contact)
    except ContactListError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "INVALID_CONTACT", str(e))

@router.delete("/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(contact_id: str, contacts: EmergencyContactList = Depends(get_contact_list)):
    await contacts.remove(contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
