# handsup/services/warning_feeds.py
# External hazard warning sources: the Bureau of Meteorology RSS feed and the
# state fire service feed.

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple
from uuid import uuid4

import httpx
import structlog

from handsup.models.warning import EmergencyWarning, WarningSeverity, WarningType
from handsup.services.regions import AustralianState

logger = structlog.get_logger(__name__)

BOM_SOURCE = "Bureau of Meteorology"


class FeedErrorKind(str, Enum):
    INVALID_ENDPOINT = "invalid_endpoint"
    NETWORK = "network"
    PARSE = "parse"


class WarningFeedError(Exception):
    """A feed could not be fetched or understood."""

    def __init__(self, kind: FeedErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return self.message


class WarningFeed(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient) -> List[EmergencyWarning]: ...


# ----------------------------------------------------------------------
# Title classification
# ----------------------------------------------------------------------
# First match wins, so more specific phrases come before generic ones.
TYPE_RULES: Sequence[Tuple[Tuple[str, ...], WarningType]] = (
    (("fire",), WarningType.FIRE),
    (("flood",), WarningType.FLOOD),
    (("heatwave", "heat wave", "extreme heat"), WarningType.HEATWAVE),
    (("severe weather",), WarningType.SEVERE_WEATHER),
    (("thunderstorm", "storm", "cyclone"), WarningType.STORM),
    (("wind", "surf", "snow", "blizzard", "frost", "sheep graziers"), WarningType.SEVERE_WEATHER),
)

SEVERITY_RULES: Sequence[Tuple[Tuple[str, ...], WarningSeverity]] = (
    (("cancellation", "cancelled", "final"), WarningSeverity.LOW),
    (("catastrophic", "emergency warning", "extreme"), WarningSeverity.CRITICAL),
    (("major", "very dangerous", "destructive"), WarningSeverity.SEVERE),
    (("minor", "watch"), WarningSeverity.MODERATE),
    (("severe", "warning"), WarningSeverity.HIGH),
)

# Bureau titles start with an issue stamp such as "19/14:05 EST "
_TITLE_STAMP = re.compile(r"^\s*\d{1,2}/\d{1,2}:\d{2}\s+[A-Z]{3,4}\s+")


def _first_match(text: str, rules, default):
    lowered = text.casefold()
    for keywords, value in rules:
        if any(keyword in lowered for keyword in keywords):
            return value
    return default


def classify_type(title: str) -> WarningType:
    return _first_match(title, TYPE_RULES, WarningType.OTHER)


def classify_severity(title: str) -> WarningSeverity:
    return _first_match(title, SEVERITY_RULES, WarningSeverity.MODERATE)


def clean_title(title: str) -> str:
    return _TITLE_STAMP.sub("", title).strip()


def location_label(title: str, default: str) -> str:
    """The area named after " for " in a bureau title, e.g. "... Warning for Blue Mountains"."""
    head, sep, tail = title.partition(" for ")
    if sep and tail.strip():
        return tail.strip()
    return default


def _parse_pub_date(value: Optional[str], fallback: datetime) -> datetime:
    if not value:
        return fallback
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(item: ET.Element, tag: str) -> Optional[str]:
    value = item.findtext(tag)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_bom_feed(payload: bytes, area: str, fetched_at: Optional[datetime] = None) -> List[EmergencyWarning]:
    """Turn a bureau warnings RSS document into warnings.

    Raises WarningFeedError(PARSE) when the payload is not XML or has no
    RSS channel. Items without a title are skipped.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as e:
        raise WarningFeedError(FeedErrorKind.PARSE, f"Warning feed is not valid XML: {e}") from e

    channel = root if root.tag == "channel" else root.find("channel")
    if channel is None:
        raise WarningFeedError(FeedErrorKind.PARSE, "Warning feed has no RSS channel")

    warnings: List[EmergencyWarning] = []
    for item in channel.findall("item"):
        raw_title = _text(item, "title")
        if not raw_title:
            continue
        title = clean_title(raw_title)
        warning_id = _text(item, "guid") or _text(item, "link") or str(uuid4())
        warnings.append(
            EmergencyWarning(
                id=warning_id,
                type=classify_type(title),
                severity=classify_severity(title),
                title=title,
                description=_text(item, "description") or "",
                location=location_label(title, area),
                issued_date=_parse_pub_date(_text(item, "pubDate"), fetched_at),
                source=BOM_SOURCE,
            )
        )
    return warnings


# ----------------------------------------------------------------------
# Feeds
# ----------------------------------------------------------------------
class BureauWarningFeed:
    """Severe weather, flood and fire weather warnings for one state."""

    def __init__(self, state: AustralianState, url_template: str):
        self.state = state
        self.url = url_template.format(
            product_id=state.info.bom_product_id,
            feed_code=state.info.bom_feed_code,
        )
        self.name = f"bom:{state.abbreviation}"

    async def fetch(self, client: httpx.AsyncClient) -> List[EmergencyWarning]:
        try:
            response = await client.get(self.url)
            response.raise_for_status()
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise WarningFeedError(FeedErrorKind.INVALID_ENDPOINT, f"Invalid warning feed URL: {self.url}") from e
        except httpx.TimeoutException as e:
            raise WarningFeedError(FeedErrorKind.NETWORK, "Warning feed timed out") from e
        except httpx.HTTPStatusError as e:
            raise WarningFeedError(
                FeedErrorKind.NETWORK,
                f"Warning feed returned HTTP {e.response.status_code}",
            ) from e
        except httpx.HTTPError as e:
            raise WarningFeedError(FeedErrorKind.NETWORK, f"Network error fetching warnings: {e}") from e

        warnings = parse_bom_feed(response.content, area=self.state.value)
        logger.info("bom_feed_fetched", feed=self.name, count=len(warnings))
        return warnings


class StateFireFeed:
    """State fire service warnings.

    The fire services publish incompatible GeoJSON/CAP formats per state and
    none is consumed yet, so this feed contributes nothing.
    """

    def __init__(self, state: AustralianState):
        self.state = state
        self.name = f"fire:{state.abbreviation}"

    async def fetch(self, client: httpx.AsyncClient) -> List[EmergencyWarning]:
        return []
