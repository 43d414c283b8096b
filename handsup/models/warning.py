from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from handsup.models.campsite import Coordinate


class WarningType(str, Enum):
    FIRE = "Fire"
    SEVERE_WEATHER = "Severe Weather"
    FLOOD = "Flood"
    STORM = "Storm"
    HEATWAVE = "Heatwave"
    MEDICAL = "Medical Emergency"
    OTHER = "Other"


class WarningSeverity(str, Enum):
    """Warning severity, ordered low < moderate < high < severe < critical.

    The comparison operators follow that order instead of the alphabetical
    order the ``str`` base would give.
    """
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    SEVERE = "Severe"
    CRITICAL = "Critical"

    @property
    def priority(self) -> int:
        return _SEVERITY_PRIORITY[self]

    def __lt__(self, other):
        if not isinstance(other, WarningSeverity):
            return NotImplemented
        return self.priority < other.priority

    def __le__(self, other):
        if not isinstance(other, WarningSeverity):
            return NotImplemented
        return self.priority <= other.priority

    def __gt__(self, other):
        if not isinstance(other, WarningSeverity):
            return NotImplemented
        return self.priority > other.priority

    def __ge__(self, other):
        if not isinstance(other, WarningSeverity):
            return NotImplemented
        return self.priority >= other.priority


_SEVERITY_PRIORITY = {
    WarningSeverity.LOW: 1,
    WarningSeverity.MODERATE: 2,
    WarningSeverity.HIGH: 3,
    WarningSeverity.SEVERE: 4,
    WarningSeverity.CRITICAL: 5,
}


class EmergencyWarning(BaseModel):
    """A geographically tagged hazard advisory from an external feed."""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique identifier.")
    type: WarningType
    severity: WarningSeverity
    title: str
    description: str = ""
    location: str = Field("", description="Free-text area label.")
    coordinates: Optional[Coordinate] = Field(None, description="Absent for area-wide warnings.")
    issued_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_date: Optional[datetime] = None
    source: str = ""
