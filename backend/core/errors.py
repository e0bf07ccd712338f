"""
Error catalog — maps failures to user-facing copy and suggested recovery actions.
"""
import logging
from enum import Enum
from typing import Any, Optional

import httpx

from models.error import ParsedError, RecoveryAction

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    # Network
    NETWORK_OFFLINE = "NETWORK_OFFLINE"
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    # Authentication
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_INVALID = "AUTH_INVALID"
    AUTH_MISSING = "AUTH_MISSING"
    # File
    FILE_PARSE_ERROR = "FILE_PARSE_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_UNSUPPORTED = "FILE_UNSUPPORTED"
    FILE_EMPTY = "FILE_EMPTY"
    FILE_CORRUPT = "FILE_CORRUPT"
    # Data
    DATA_INVALID = "DATA_INVALID"
    DATA_MISSING = "DATA_MISSING"
    DATA_CORRUPT = "DATA_CORRUPT"
    # Integrations
    INTEGRATION_CONNECTION = "INTEGRATION_CONNECTION"
    INTEGRATION_AUTH = "INTEGRATION_AUTH"
    INTEGRATION_RATE_LIMIT = "INTEGRATION_RATE_LIMIT"
    INTEGRATION_QUOTA = "INTEGRATION_QUOTA"
    # Sync
    SYNC_FAILED = "SYNC_FAILED"
    SYNC_CONFLICT = "SYNC_CONFLICT"
    SYNC_TIMEOUT = "SYNC_TIMEOUT"
    # Storage
    STORAGE_FULL = "STORAGE_FULL"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    # API
    API_ERROR = "API_ERROR"
    API_NOT_FOUND = "API_NOT_FOUND"
    API_SERVER_ERROR = "API_SERVER_ERROR"

    UNKNOWN = "UNKNOWN"


# code → (title, message)
ERROR_MESSAGES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.NETWORK_OFFLINE: ("No Internet Connection", "Connection failed. Please check your internet and try again."),
    ErrorCode.NETWORK_TIMEOUT: ("Request Timed Out", "The request took too long. Please try again."),
    ErrorCode.NETWORK_ERROR: ("Connection Failed", "Could not connect to the server. Please check your internet."),
    ErrorCode.AUTH_EXPIRED: ("Session Expired", "Your session has expired. Please reconnect your account."),
    ErrorCode.AUTH_INVALID: ("Authentication Failed", "Invalid credentials. Please check your API key or reconnect."),
    ErrorCode.AUTH_MISSING: ("Authentication Required", "Please add your API key or sign in to continue."),
    ErrorCode.FILE_PARSE_ERROR: ("File Read Error", "Couldn't read this file. Try a different format (CSV, JSON)."),
    ErrorCode.FILE_TOO_LARGE: ("File Too Large", "This file exceeds the size limit. Try splitting it into smaller files."),
    ErrorCode.FILE_UNSUPPORTED: ("Unsupported Format", "This file type is not supported. Try CSV or JSON formats."),
    ErrorCode.FILE_EMPTY: ("Empty File", "This file appears to be empty. Please check and try again."),
    ErrorCode.FILE_CORRUPT: ("Corrupt File", "This file appears to be damaged. Try re-exporting from the source."),
    ErrorCode.DATA_INVALID: ("Invalid Data", "The data format is not recognized. Please check your file structure."),
    ErrorCode.DATA_MISSING: ("Missing Data", "Required data is missing. Please check your file has all required columns."),
    ErrorCode.DATA_CORRUPT: ("Data Error", "Some data could not be processed. Try re-exporting from source."),
    ErrorCode.INTEGRATION_CONNECTION: ("Connection Failed", "Couldn't connect to this service. Please check your credentials."),
    ErrorCode.INTEGRATION_AUTH: ("Authorization Failed", "Access denied. Please check permissions or reconnect your account."),
    ErrorCode.INTEGRATION_RATE_LIMIT: ("Rate Limited", "Too many requests. Please wait a few minutes and try again."),
    ErrorCode.INTEGRATION_QUOTA: ("Quota Exceeded", "You have reached your usage limit. Please upgrade or wait for reset."),
    ErrorCode.SYNC_FAILED: ("Sync Failed", "Data sync failed. Please check your connection and try again."),
    ErrorCode.SYNC_CONFLICT: ("Sync Conflict", "Data was modified elsewhere. Please refresh and try again."),
    ErrorCode.SYNC_TIMEOUT: ("Sync Timed Out", "Sync took too long. Your data may be too large or connection slow."),
    ErrorCode.STORAGE_FULL: ("Storage Full", "Storage is full. Please delete some data and try again."),
    ErrorCode.STORAGE_UNAVAILABLE: ("Storage Unavailable", "Could not save data. Please check the storage configuration."),
    ErrorCode.API_ERROR: ("Request Failed", "Something went wrong with the request. Please try again."),
    ErrorCode.API_NOT_FOUND: ("Not Found", "The requested resource could not be found."),
    ErrorCode.API_SERVER_ERROR: ("Server Error", "The server encountered an error. Please try again later."),
    ErrorCode.UNKNOWN: ("Something Went Wrong", "An unexpected error occurred. Please try again."),
}


def _actions(*pairs: tuple[str, str]) -> list[RecoveryAction]:
    # first action is the primary one
    return [RecoveryAction(label=label, action=action, primary=(i == 0)) for i, (label, action) in enumerate(pairs)]


_RETRY_DISMISS = (("Retry", "retry"), ("Dismiss", "dismiss"))
_TRY_AGAIN_DISMISS = (("Try Again", "retry"), ("Dismiss", "dismiss"))
_SETTINGS_DISMISS = (("Go to Settings", "settings"), ("Dismiss", "dismiss"))
_RECONNECT_SETTINGS = (("Reconnect", "reconnect"), ("Go to Settings", "settings"))

RECOVERY_ACTIONS: dict[ErrorCode, list[RecoveryAction]] = {
    ErrorCode.NETWORK_OFFLINE: _actions(*_RETRY_DISMISS),
    ErrorCode.NETWORK_TIMEOUT: _actions(*_RETRY_DISMISS),
    ErrorCode.NETWORK_ERROR: _actions(*_RETRY_DISMISS),
    ErrorCode.AUTH_EXPIRED: _actions(("Reconnect", "reconnect"), ("Dismiss", "dismiss")),
    ErrorCode.AUTH_INVALID: _actions(*_SETTINGS_DISMISS),
    ErrorCode.AUTH_MISSING: _actions(*_SETTINGS_DISMISS),
    ErrorCode.FILE_PARSE_ERROR: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.FILE_TOO_LARGE: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.FILE_UNSUPPORTED: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.FILE_EMPTY: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.FILE_CORRUPT: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.DATA_INVALID: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.DATA_MISSING: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.DATA_CORRUPT: _actions(*_TRY_AGAIN_DISMISS),
    ErrorCode.INTEGRATION_CONNECTION: _actions(*_RECONNECT_SETTINGS),
    ErrorCode.INTEGRATION_AUTH: _actions(*_RECONNECT_SETTINGS),
    ErrorCode.INTEGRATION_RATE_LIMIT: _actions(("Retry Later", "retry"), ("Dismiss", "dismiss")),
    ErrorCode.INTEGRATION_QUOTA: _actions(*_SETTINGS_DISMISS),
    ErrorCode.SYNC_FAILED: _actions(("Retry Sync", "retry"), ("Dismiss", "dismiss")),
    ErrorCode.SYNC_CONFLICT: _actions(("Refresh", "refresh"), ("Dismiss", "dismiss")),
    ErrorCode.SYNC_TIMEOUT: _actions(*_RETRY_DISMISS),
    ErrorCode.STORAGE_FULL: _actions(("Manage Data", "settings"), ("Dismiss", "dismiss")),
    ErrorCode.STORAGE_UNAVAILABLE: _actions(("Retry", "retry"), ("Contact Support", "support")),
    ErrorCode.API_ERROR: _actions(*_RETRY_DISMISS),
    ErrorCode.API_NOT_FOUND: _actions(("Refresh", "refresh"), ("Dismiss", "dismiss")),
    ErrorCode.API_SERVER_ERROR: _actions(("Retry", "retry"), ("Contact Support", "support")),
    ErrorCode.UNKNOWN: _actions(("Retry", "retry"), ("Refresh Page", "refresh")),
}

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.AUTH_EXPIRED: 401,
    ErrorCode.AUTH_INVALID: 401,
    ErrorCode.AUTH_MISSING: 401,
    ErrorCode.FILE_PARSE_ERROR: 400,
    ErrorCode.FILE_TOO_LARGE: 413,
    ErrorCode.FILE_UNSUPPORTED: 415,
    ErrorCode.FILE_EMPTY: 400,
    ErrorCode.FILE_CORRUPT: 400,
    ErrorCode.DATA_INVALID: 422,
    ErrorCode.DATA_MISSING: 422,
    ErrorCode.DATA_CORRUPT: 422,
    ErrorCode.INTEGRATION_RATE_LIMIT: 429,
    ErrorCode.INTEGRATION_CONNECTION: 502,
    ErrorCode.NETWORK_ERROR: 502,
    ErrorCode.NETWORK_TIMEOUT: 504,
    ErrorCode.STORAGE_UNAVAILABLE: 503,
    ErrorCode.STORAGE_FULL: 507,
    ErrorCode.SYNC_CONFLICT: 409,
    ErrorCode.API_NOT_FOUND: 404,
}


class AppError(Exception):
    """An error with a catalog code; message defaults to the friendly copy."""

    def __init__(self, code: ErrorCode, message: Optional[str] = None, technical: Optional[str] = None):
        super().__init__(message or ERROR_MESSAGES[code][1])
        self.code = code
        self.technical = technical

    @property
    def status_code(self) -> int:
        return http_status(self.code)


def http_status(code: ErrorCode) -> int:
    return HTTP_STATUS.get(code, 500)


# ── Detection ────────────────────────────────────────────────────────────────

_MESSAGE_RULES: list[tuple[tuple[str, ...], ErrorCode]] = [
    (("timeout", "timed out"), ErrorCode.NETWORK_TIMEOUT),
    (("network", "connection"), ErrorCode.NETWORK_ERROR),
    (("unauthorized", "401"), ErrorCode.AUTH_INVALID),
    (("expired", "token"), ErrorCode.AUTH_EXPIRED),
    (("forbidden", "403"), ErrorCode.AUTH_INVALID),
    (("parse", "syntax"), ErrorCode.FILE_PARSE_ERROR),
    (("too large", "size"), ErrorCode.FILE_TOO_LARGE),
    (("unsupported", "format"), ErrorCode.FILE_UNSUPPORTED),
    (("empty",), ErrorCode.FILE_EMPTY),
    (("corrupt",), ErrorCode.FILE_CORRUPT),
    (("rate limit", "429", "too many"), ErrorCode.INTEGRATION_RATE_LIMIT),
    (("quota", "limit exceeded"), ErrorCode.INTEGRATION_QUOTA),
    (("storage", "database is locked"), ErrorCode.STORAGE_UNAVAILABLE),
    (("500", "internal server"), ErrorCode.API_SERVER_ERROR),
    (("404", "not found"), ErrorCode.API_NOT_FOUND),
]


def _code_from_status(status: int) -> Optional[ErrorCode]:
    if status in (401, 403):
        return ErrorCode.AUTH_INVALID
    if status == 404:
        return ErrorCode.API_NOT_FOUND
    if status == 429:
        return ErrorCode.INTEGRATION_RATE_LIMIT
    if status >= 500:
        return ErrorCode.API_SERVER_ERROR
    return None


def detect_error_code(error: Any) -> ErrorCode:
    """Best-effort classification of an exception (or error-like object)."""
    if isinstance(error, AppError):
        return error.code
    if isinstance(error, httpx.TimeoutException):
        return ErrorCode.NETWORK_TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return _code_from_status(error.response.status_code) or ErrorCode.API_ERROR
    if isinstance(error, httpx.TransportError):
        return ErrorCode.NETWORK_ERROR

    if isinstance(error, BaseException):
        message = str(error).lower()
        if isinstance(error, TimeoutError):
            return ErrorCode.NETWORK_TIMEOUT
        for keywords, code in _MESSAGE_RULES:
            if any(k in message for k in keywords):
                return code

    status = getattr(error, "status", None) or getattr(error, "status_code", None)
    if isinstance(status, int):
        code = _code_from_status(status)
        if code:
            return code

    raw_code = getattr(error, "code", None)
    if raw_code is not None:
        text = str(raw_code).lower()
        if "auth" in text:
            return ErrorCode.AUTH_INVALID
        if "network" in text:
            return ErrorCode.NETWORK_ERROR
        if "timeout" in text:
            return ErrorCode.NETWORK_TIMEOUT

    return ErrorCode.UNKNOWN


def parse_error(error: Any) -> ParsedError:
    code = detect_error_code(error)
    title, message = ERROR_MESSAGES[code]

    technical: Optional[str]
    if isinstance(error, AppError):
        technical = error.technical or str(error)
    elif isinstance(error, BaseException):
        technical = f"{type(error).__name__}: {error}"
    elif error is None:
        technical = None
    else:
        technical = str(error)

    return ParsedError(
        code=code.value,
        title=title,
        message=message,
        technical=technical,
        recovery_actions=recovery_actions(code),
    )


def recovery_actions(code: ErrorCode) -> list[RecoveryAction]:
    return RECOVERY_ACTIONS.get(code, RECOVERY_ACTIONS[ErrorCode.UNKNOWN])


def log_error(error: Any, context: Optional[dict] = None) -> ParsedError:
    parsed = parse_error(error)
    logger.error("[%s] %s: %s | context=%s", parsed.code, parsed.title, parsed.technical, context or {})
    return parsed
