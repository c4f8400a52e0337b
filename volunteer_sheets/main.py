from __future__ import annotations

import asyncio
import logging

from .adapters.base import SheetsClient
from .adapters.google_sheets import GoogleSheetsClient, ServiceAccountAuth
from .adapters.local import LocalSheetsClient
from .config import Settings, load_settings
from .core.storage import SheetsStorage
from .exceptions import InvalidInputError, SheetsAPIError, SheetsPermissionError
from .logging_config import setup_logging


def build_client(settings: Settings) -> SheetsClient:
    """Google Sheets when a spreadsheet id is configured, else the local file."""
    if settings.uses_google:
        auth = ServiceAccountAuth(settings.service_account_email, settings.private_key)
        return GoogleSheetsClient(settings.spreadsheet_id, auth)
    return LocalSheetsClient(settings.local_path)


def main() -> int:
    log = setup_logging()
    try:
        settings = load_settings()
    except InvalidInputError as exc:
        log.error("%s", exc)
        return 2
    log.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if settings.uses_google:
        if not (settings.service_account_email and settings.private_key):
            log.error(
                "GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY must be set "
                "together with GOOGLE_SPREADSHEET_ID."
            )
            return 2
    elif not settings.local_path:
        log.error(
            "Neither GOOGLE_SPREADSHEET_ID nor SHEETS_LOCAL_PATH is set. "
            "Export one of them in your environment before running."
        )
        return 2

    try:
        client = build_client(settings)
    except SheetsAPIError as exc:
        log.error("%s", exc)
        return 2
    storage = SheetsStorage(client, timestamp_fallback=settings.timestamp_fallback)

    async def runner() -> int:
        try:
            await storage.ensure_worksheets()
            for name, store in storage.stores.items():
                records = await store.get_all()
                log.info("%s: %d record(s)", name, len(records))
        except SheetsPermissionError as exc:
            log.error("%s", exc)
            return 1
        finally:
            await client.close()
        return 0

    return asyncio.run(runner())


if __name__ == "__main__":
    raise SystemExit(main())
