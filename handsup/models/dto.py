# Request and response shapes for the HTTP API

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from handsup.models.campsite import Campsite, Coordinate
from handsup.models.warning import EmergencyWarning

# --- Campsites ---

class CampsiteList(BaseModel):
    """A list of campsites with its length."""
    count: int = Field(..., description="Number of campsites returned.")
    campsites: List[Campsite]

class NearbyCampsite(BaseModel):
    """A campsite near the caller with a human-readable distance."""
    campsite: Campsite
    distance_km: float = Field(..., description="Great-circle distance from the caller.")
    distance_label: str = Field(..., description="e.g. '850m away', '4.2km away'.")

class FilterOptionsResponse(BaseModel):
    categories: List[str]
    camping_types: List[str]
    seasons: List[str]
    amenities: List[str]
    cell_reception: List[str]
    has_accessible_campsites: bool

# --- Warnings ---

class WarningSnapshotResponse(BaseModel):
    """Current warning snapshot and the state of the last refresh."""
    warnings: List[EmergencyWarning]
    last_updated: Optional[datetime] = Field(None, description="Time of the last successful refresh.")
    is_loading: bool = Field(False, description="True while a refresh is in flight.")
    error_message: Optional[str] = Field(None, description="Why the last refresh failed, if it did.")

class NearbyResourcesResponse(BaseModel):
    """Campsites and warnings around one position."""
    location: Coordinate
    campsites: List[NearbyCampsite]
    warnings: List[EmergencyWarning]
    critical_warnings: List[EmergencyWarning]

# --- Messages and contacts ---

class ComposeMessageRequest(BaseModel):
    template_title: str = Field(..., description="Title of one of the camping templates.")
    user_name: str = Field("", description="Name of the person in trouble.")
    location: str = Field(..., description="Location text, usually coordinates.")

class ComposeMessageResponse(BaseModel):
    message: str
    recipients: List[str] = Field(default_factory=list, description="Phone numbers from the emergency contact list.")

# --- Errors ---

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field(..., description="A human-readable explanation.")
    messages: List[str] = Field(default_factory=list, description="Individual validation messages, when there are several.")
