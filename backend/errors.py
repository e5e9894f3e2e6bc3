# backend/errors.py
from __future__ import annotations

from typing import Optional


class VintageProcessingError(Exception):
    """Base class for failures raised while splitting portfolios by vintage."""

    def __init__(self, message: str, input_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.input_name = input_name


class InputValidationError(VintageProcessingError):
    """Malformed input. Permanent until the caller fixes the upload (HTTP 400)."""


class NoSheetError(InputValidationError):
    def __init__(self, input_name: str):
        super().__init__(f"{input_name.capitalize()} Excel file has no sheets", input_name)


class MissingVintageColumnError(InputValidationError):
    def __init__(self, input_name: str, key: str = "Vintage"):
        super().__init__(
            f"{input_name.capitalize()} Excel file does not contain a '{key}' column",
            input_name,
        )
        self.key = key


class UnreadableWorkbookError(InputValidationError):
    def __init__(self, input_name: str, reason: str = ""):
        msg = f"{input_name.capitalize()} file is not a readable Excel workbook"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, input_name)


class UnsupportedFileTypeError(InputValidationError):
    def __init__(self, input_name: str, filename: str = ""):
        super().__init__(
            f"Only Excel files are allowed ({input_name}: {filename or 'unnamed file'})",
            input_name,
        )
        self.filename = filename
