from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    SPREADSHEET_ID: str = ""
    # Full JSON payload of the service account key
    GOOGLE_SERVICE_ACCOUNT_JSON: str = ""

    ADMIN_PASSWORD: str = ""

    SHEETS_API_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_API_TIMEOUT: float = 15.0

    MAX_CONCURRENT_SHEETS_REQUESTS: int = 4

    AVAILABILITY_TAB: str = "Availability"
    BLACKOUT_TAB: str = "Resident Blackouts"
    DJ_RATES_TAB: str = "DJ Rates"
    ARKBAR_TAB: str = "ARKbar Roster"
    HIP_TAB: str = "HIP Roster"
    LOVE_TAB: str = "Love Beach Roster"

    DJ_CACHE_TTL: int = 600
    AVAILABILITY_CACHE_TTL: int = 180
    BLACKOUT_CACHE_TTL: int = 180

    RESIDENTS: list[str] = ["Alex RedWhite", "Raffo DJ", "Sound Bwoy", "Tobi", "Leo"]

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
