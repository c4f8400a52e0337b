"""Google Sheets client implementing :class:`~volunteer_sheets.adapters.base.SheetsClient`.

Requests go straight to the Sheets v4 REST API through :mod:`httpx` so the
whole storage layer stays asynchronous. Access tokens come from a service
account via :mod:`google.auth`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from ..exceptions import SheetsAPIError
from .base import Row, SheetsClient

SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)
TOKEN_URI = "https://oauth2.googleapis.com/token"


class TokenSource(Protocol):
    async def token(self) -> str: ...


class ServiceAccountAuth:
    """Bearer tokens for a service account identified by email and key."""

    def __init__(self, email: str, private_key: str) -> None:
        info = {
            "type": "service_account",
            "client_email": email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        }
        try:
            self.credentials = service_account.Credentials.from_service_account_info(
                info, scopes=list(SCOPES)
            )
        except (GoogleAuthError, ValueError) as exc:
            raise SheetsAPIError(f"Invalid service account credentials: {exc}") from exc

    async def token(self) -> str:
        if not self.credentials.valid:
            try:
                # google-auth refreshes synchronously
                await asyncio.to_thread(self.credentials.refresh, Request())
            except GoogleAuthError as exc:
                raise SheetsAPIError(f"Could not obtain access token: {exc}") from exc
        return self.credentials.token


class GoogleSheetsClient(SheetsClient):
    """Client that talks to one spreadsheet over the Sheets HTTP API."""

    api_base = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(
        self,
        spreadsheet_id: str,
        auth: TokenSource,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Store the ``spreadsheet_id``, token source and optional HTTP ``client``."""
        self.spreadsheet_id = spreadsheet_id
        self.auth = auth
        self.client = client or httpx.AsyncClient()

    # ------------------------------------------------------------------
    # Internal helpers
    def _values_url(self, range_: str, suffix: str = "") -> str:
        return f"{self.api_base}/{self.spreadsheet_id}/values/{quote(range_, safe='')}{suffix}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {await self.auth.token()}"}
        response = await self.client.request(method, url, headers=headers, **kwargs)
        response.raise_for_status()
        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    async def get_spreadsheet(self) -> dict[str, Any]:
        url = f"{self.api_base}/{self.spreadsheet_id}"
        return await self._request("GET", url, params={"fields": "sheets.properties"})

    async def get_values(self, range_: str) -> list[Row]:
        data = await self._request("GET", self._values_url(range_))
        return data.get("values", [])

    async def update_values(self, range_: str, values: list[Row]) -> None:
        """Write ``values`` into ``range_`` as raw (unparsed) input."""
        await self._request(
            "PUT",
            self._values_url(range_),
            params={"valueInputOption": "RAW"},
            json={"range": range_, "majorDimension": "ROWS", "values": values},
        )

    async def append_values(self, range_: str, values: list[Row]) -> None:
        await self._request(
            "POST",
            self._values_url(range_, ":append"),
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"majorDimension": "ROWS", "values": values},
        )

    async def batch_update(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        url = f"{self.api_base}/{self.spreadsheet_id}:batchUpdate"
        return await self._request("POST", url, json={"requests": requests})

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
