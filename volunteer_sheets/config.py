import os
from dataclasses import dataclass

from .core.codec import TIMESTAMP_FALLBACKS
from .exceptions import InvalidInputError


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str = ""
    service_account_email: str = ""
    private_key: str = ""
    # Path of a JSON file used instead of Google Sheets when no spreadsheet is set
    local_path: str = ""
    timestamp_fallback: str = "none"
    log_level: str = "INFO"

    @property
    def uses_google(self) -> bool:
        return bool(self.spreadsheet_id)


def load_settings() -> Settings:
    fallback = os.getenv("SHEETS_TIMESTAMP_FALLBACK", "none").strip().lower() or "none"
    if fallback not in TIMESTAMP_FALLBACKS:
        raise InvalidInputError(
            f"SHEETS_TIMESTAMP_FALLBACK must be one of {', '.join(TIMESTAMP_FALLBACKS)}"
        )
    # Keys pasted into env files usually carry literal "\n" sequences.
    private_key = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
    return Settings(
        spreadsheet_id=os.getenv("GOOGLE_SPREADSHEET_ID", "").strip(),
        service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "").strip(),
        private_key=private_key,
        local_path=os.getenv("SHEETS_LOCAL_PATH", "").strip(),
        timestamp_fallback=fallback,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
