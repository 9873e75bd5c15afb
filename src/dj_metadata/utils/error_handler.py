"""
User-Friendly Error Handling

Turns codec exceptions and file errors raised while inspecting tags,
markers, samples or fingerprints into short German messages with
suggestions, as printed by the command line tool.
"""

import logging
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Any, List, Tuple, Type

from ..core.exceptions import (
    DecodeError,
    DJMetadataError,
    InvalidFormatError,
    MissingMediaError,
    OutOfBoundsError,
)


class ErrorCategory(Enum):
    """Where an error originates"""
    FILE_ACCESS = "file_access"
    DECODING = "decoding"
    ENCODING = "encoding"
    CONFIGURATION = "configuration"
    USER_INPUT = "user_input"
    SYSTEM = "system"


@dataclass
class UserFriendlyError:
    """Translated error as shown to the user"""
    category: ErrorCategory
    title: str
    message: str
    suggestions: List[str] = field(default_factory=list)
    technical_details: Optional[str] = None
    error_code: Optional[str] = None


ERROR_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "file_not_found": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "Datei nicht gefunden",
        "message": "'{file_path}' existiert nicht.",
        "suggestions": [
            "Pfad und Dateinamen prüfen",
        ],
    },
    "permission_denied": {
        "category": ErrorCategory.FILE_ACCESS,
        "title": "Zugriff verweigert",
        "message": "'{file_path}' darf nicht gelesen oder geschrieben werden.",
        "suggestions": [
            "Dateiberechtigungen prüfen",
            "Bei --rewrite/--extract-media ein beschreibbares Ziel wählen",
        ],
    },
    "invalid_format": {
        "category": ErrorCategory.DECODING,
        "title": "Ungültiges Dateiformat",
        "message": "'{file_path}' passt nicht zum erwarteten Format: {details}",
        "suggestions": [
            "Prüfen, ob der Modus (--mode) zur Datei passt",
            "Die Datei in der DJ-Software neu analysieren lassen",
        ],
    },
    "truncated_data": {
        "category": ErrorCategory.DECODING,
        "title": "Unvollständige Daten",
        "message": "'{file_path}' endet vorzeitig: {details}",
        "suggestions": [
            "Die Datei erneut von der Quelle kopieren",
        ],
    },
    "missing_media": {
        "category": ErrorCategory.ENCODING,
        "title": "Keine Mediendaten",
        "message": "Ein Sample ohne Audio- oder Videodaten kann nicht geschrieben werden.",
        "suggestions": [
            "Nur Samples mit eingebettetem Medium neu schreiben",
        ],
    },
    "config_invalid": {
        "category": ErrorCategory.CONFIGURATION,
        "title": "Ungültige Konfiguration",
        "message": "Folgende Einstellungen sind ungültig: {issues}",
        "suggestions": [
            "config/default.json und settings.json prüfen",
            "Die Datei entfernen, um die Standardwerte zu verwenden",
        ],
    },
    "invalid_option": {
        "category": ErrorCategory.USER_INPUT,
        "title": "Ungültige Option",
        "message": "'{value}' ist kein gültiger Wert für {option}.",
        "suggestions": [
            "dj-metadata --help zeigt die erlaubten Werte",
        ],
    },
    "memory_error": {
        "category": ErrorCategory.SYSTEM,
        "title": "Speicher-Fehler",
        "message": "Die Datei ist zu groß für den verfügbaren Arbeitsspeicher.",
        "suggestions": [
            "tags.max_size in der Konfiguration verringern",
        ],
    },
    "system_error": {
        "category": ErrorCategory.SYSTEM,
        "title": "System-Fehler",
        "message": "Unerwarteter Fehler: {details}",
        "suggestions": [
            "Den Befehl mit --verbose wiederholen",
        ],
    },
}

# First match wins, so subclasses come before their bases
_EXCEPTION_KEYS: Tuple[Tuple[Type[BaseException], str], ...] = (
    (MissingMediaError, "missing_media"),
    (OutOfBoundsError, "truncated_data"),
    (InvalidFormatError, "invalid_format"),
    (DJMetadataError, "invalid_format"),
    (FileNotFoundError, "file_not_found"),
    (PermissionError, "permission_denied"),
    (MemoryError, "memory_error"),
)


class ErrorHandler:
    """
    Maps exceptions onto ``ERROR_TEMPLATES`` and renders them.

    Technical details (exception type and traceback) are only collected
    in verbose mode.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        self.error_templates = ERROR_TEMPLATES

    def handle_exception(self, exception: Exception, context: Dict[str, Any] = None) -> UserFriendlyError:
        """
        Convert exception to user-friendly error.

        Args:
            exception: Exception raised by a codec or by file access
            context: Values for the message placeholders (``file_path``,
                ``option``, ``value``, ``issues``) and the flags
                ``config_validation`` / ``user_input``

        Returns:
            UserFriendlyError object
        """
        context = dict(context or {})
        context.setdefault("details", str(exception))

        error_key = self._classify_exception(exception, context)
        template = self.error_templates[error_key]

        try:
            message = template["message"].format(**context)
        except (KeyError, ValueError):
            # Leave placeholders visible rather than failing on missing context
            message = template["message"]

        technical_details = None
        if self.verbose:
            technical_details = f"{type(exception).__name__}: {exception}\n{traceback.format_exc()}"

        return UserFriendlyError(
            category=template["category"],
            title=template["title"],
            message=message,
            suggestions=list(template["suggestions"]),
            technical_details=technical_details,
            error_code=error_key,
        )

    def _classify_exception(self, exception: Exception, context: Dict[str, Any]) -> str:
        if isinstance(exception, DecodeError):
            if isinstance(exception.cause, OutOfBoundsError):
                return "truncated_data"
            return "invalid_format"

        for exception_type, key in _EXCEPTION_KEYS:
            if isinstance(exception, exception_type):
                return key

        if isinstance(exception, ValueError):
            if context.get("config_validation"):
                return "config_invalid"
            if context.get("user_input"):
                return "invalid_option"

        return "system_error"

    def format_error_message(self, error: UserFriendlyError, show_suggestions: bool = True) -> str:
        """Render an error as a multi-line block for stderr"""
        lines = [f"❌ {error.title}", f"   {error.message}", ""]

        if show_suggestions and error.suggestions:
            lines.append("💡 Lösungsvorschläge:")
            lines.extend(f"   • {suggestion}" for suggestion in error.suggestions)
            lines.append("")

        if self.verbose and error.technical_details:
            lines.append("🔧 Technische Details:")
            lines.extend(f"   {line}" for line in error.technical_details.splitlines() if line.strip())
            lines.append("")

        if error.error_code:
            lines.append(f"🔍 Fehler-Code: {error.error_code}")

        return '\n'.join(lines)

    def log_error(self, error: UserFriendlyError, original_exception: Exception = None):
        """Log at WARNING for user mistakes, ERROR for everything else"""
        if error.category in (ErrorCategory.USER_INPUT, ErrorCategory.CONFIGURATION):
            self.logger.warning(f"{error.error_code}: {error.message}")
        else:
            self.logger.error(f"{error.error_code}: {error.message}")

        if original_exception is not None and error.technical_details:
            self.logger.debug(error.technical_details)


_error_handler: Optional[ErrorHandler] = None


def get_error_handler(verbose: bool = False) -> ErrorHandler:
    """Shared handler, recreated when the verbosity changes"""
    global _error_handler
    if _error_handler is None or _error_handler.verbose != verbose:
        _error_handler = ErrorHandler(verbose=verbose)
    return _error_handler


def handle_user_error(exception: Exception, context: Dict[str, Any] = None, verbose: bool = False) -> str:
    """Translate, log and format an exception in one call"""
    handler = get_error_handler(verbose)
    error = handler.handle_exception(exception, context)
    handler.log_error(error, exception)
    return handler.format_error_message(error)
