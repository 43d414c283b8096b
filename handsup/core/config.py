# Service configuration: storage keys, warning feed and search radii

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "HandsUp SOS"
    VERSION: str = "0.2.0"
    BRIEF_DESCRIPTION: str = "Campsite records and hazard warnings for outdoor campers and hikers with hearing impairments."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")

    # --- Persistence ---
    ENABLE_REDIS: bool = Field(False, description="Persist to Redis instead of process memory")
    REDIS_URL: Optional[str] = Field(None, description="Redis URL for the key-value store")
    CAMPSITES_KEY: str = Field("SavedCampsites", description="Key holding the serialized campsite collection")
    CONTACTS_KEY: str = Field("EmergencyContacts", description="Key holding the emergency contact list")

    # --- Warning feeds ---
    SELECTED_STATE: str = Field("Victoria", description="Australian state or territory whose warnings are fetched")
    BOM_FEED_URL_TEMPLATE: str = Field(
        "https://www.bom.gov.au/fwo/{product_id}.warnings_{feed_code}.xml",
        description="Bureau of Meteorology warnings RSS feed"
    )
    WARNING_REFRESH_SECONDS: int = 300 # 5 minutes
    WARNING_FETCH_TIMEOUT: float = 10.0 # seconds
    WARNING_REFRESH_ON_START: bool = True
    HTTP_USER_AGENT: str = "HandsUpSOS/0.2"

    # --- Search radii (km) ---
    CAMPSITE_SEARCH_RADIUS_KM: float = 50.0
    WARNING_SEARCH_RADIUS_KM: float = 100.0
    NEARBY_RESOURCES_LIMIT: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
