"""Exception hierarchy for the spreadsheet-backed storage.

Not-found lookups are *not* errors: ``get`` returns ``None``, ``update``
returns ``None`` and ``delete`` returns ``False``. The classes below cover
the conditions callers cannot recover from by simply checking a return
value.
"""


class VolunteerSheetsError(Exception):
    """Base exception for all storage errors."""


class SheetsAPIError(VolunteerSheetsError):
    """A spreadsheet client call failed outside of an HTTP status error."""


class SheetsPermissionError(VolunteerSheetsError):
    """The worksheets could not be inspected or created.

    Almost always means the spreadsheet is not shared with the service
    account. Fatal for the current request; retrying will not help until
    someone fixes the sharing settings.
    """

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Google Sheets permission denied. Please ensure the service "
            "account has access to the spreadsheet."
        )


class ConcurrentModificationError(VolunteerSheetsError):
    """A row changed between the read that located it and the write."""

    def __init__(self, sheet: str, row_number: int):
        self.sheet = sheet
        self.row_number = row_number
        super().__init__(f"Row {row_number} of sheet {sheet!r} was modified concurrently")


class MessageNotFoundError(VolunteerSheetsError):
    """Parent message of a reply doesn't exist."""

    def __init__(self, message_id: int):
        self.message_id = message_id
        super().__init__(f"Parent message {message_id} not found")


class InvalidInputError(VolunteerSheetsError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)
