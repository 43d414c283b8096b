from enum import Enum
from typing import NamedTuple


class RegionInfo(NamedTuple):
    abbreviation: str
    fire_service: str
    # Bureau of Meteorology warnings product; ACT warnings are issued with NSW
    bom_product_id: str
    bom_feed_code: str


class AustralianState(str, Enum):
    ACT = "Australian Capital Territory"
    NSW = "New South Wales"
    NT = "Northern Territory"
    QLD = "Queensland"
    SA = "South Australia"
    TAS = "Tasmania"
    VIC = "Victoria"
    WA = "Western Australia"

    @property
    def info(self) -> RegionInfo:
        return REGIONS[self]

    @property
    def abbreviation(self) -> str:
        return self.info.abbreviation

    @property
    def fire_service(self) -> str:
        return self.info.fire_service


REGIONS = {
    AustralianState.ACT: RegionInfo("ACT", "ACT Fire and Rescue", "IDZ00054", "nsw"),
    AustralianState.NSW: RegionInfo("NSW", "RFS (Rural Fire Service)", "IDZ00054", "nsw"),
    AustralianState.NT: RegionInfo("NT", "NT Fire and Rescue", "IDZ00055", "nt"),
    AustralianState.QLD: RegionInfo("QLD", "QFES (Queensland Fire and Emergency Services)", "IDZ00056", "qld"),
    AustralianState.SA: RegionInfo("SA", "CFS (Country Fire Service)", "IDZ00057", "sa"),
    AustralianState.TAS: RegionInfo("TAS", "TFS (Tasmania Fire Service)", "IDZ00058", "tas"),
    AustralianState.VIC: RegionInfo("VIC", "CFA (Country Fire Authority)", "IDZ00059", "vic"),
    AustralianState.WA: RegionInfo("WA", "DFES (Department of Fire and Emergency Services)", "IDZ00060", "wa"),
}


def resolve_state(name: str) -> AustralianState:
    """Accept a full name ("Victoria") or an abbreviation ("VIC"), any case."""
    wanted = name.strip().casefold()
    for state in AustralianState:
        if wanted in (state.value.casefold(), state.abbreviation.casefold()):
            return state
    raise ValueError(f"unknown Australian state or territory: {name!r}")
