"""Date resolution and formatting for document metadata."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
import re
from threading import RLock
from typing import Any


SPECIAL_DATES = ("today", "now", "last-modified")

_MONTHS: dict[str, tuple[str, ...]] = {
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    "fr": (
        "janvier", "février", "mars", "avril", "mai", "juin",
        "juillet", "août", "septembre", "octobre", "novembre", "décembre",
    ),
    "de": (
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ),
    "es": (
        "enero", "febrero", "marzo", "abril", "mayo", "junio",
        "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
    ),
}
_WEEKDAYS: dict[str, tuple[str, ...]] = {
    "en": ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    "fr": ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"),
    "de": ("Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"),
    "es": ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"),
}

_STYLES = {
    "full": "dddd, MMMM D, YYYY",
    "long": "MMMM D, YYYY",
    "medium": "MMM D, YYYY",
    "short": "M/D/YY",
    "iso": "YYYY-MM-DD",
}
_LOCALE_STYLES = {
    "fr": {"full": "dddd D MMMM YYYY", "long": "D MMMM YYYY", "medium": "D MMM YYYY", "short": "DD/MM/YYYY"},
    "de": {"full": "dddd, D. MMMM YYYY", "long": "D. MMMM YYYY", "medium": "D. MMM YYYY", "short": "DD.MM.YY"},
    "es": {"full": "dddd, D de MMMM de YYYY", "long": "D de MMMM de YYYY", "medium": "D MMM YYYY", "short": "D/M/YY"},
}

_TOKEN_RE = re.compile(r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd")
_INPUT_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m",
    "%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%m/%d/%Y",
)

_LOCALE = "en"
_LOCALE_LOCK = RLock()


def set_date_locale(lang: str | None) -> str:
    """Select the locale used when formatting dates and return it."""
    global _LOCALE
    candidate = (lang or "en").replace("_", "-").split("-")[0].lower()
    with _LOCALE_LOCK:
        _LOCALE = candidate if candidate in _MONTHS else "en"
        return _LOCALE


def date_locale() -> str:
    """Return the active date locale."""
    with _LOCALE_LOCK:
        return _LOCALE


def is_special_date(value: Any) -> bool:
    """Return True when the value is a symbolic date such as ``today``."""
    return isinstance(value, str) and value.strip().lower() in SPECIAL_DATES


def parse_special_date(input_path: Path | str, value: str) -> str:
    """Resolve a symbolic date into an ISO formatted string."""
    keyword = value.strip().lower()
    if keyword == "today":
        return date.today().isoformat()
    if keyword == "now":
        return datetime.now().replace(microsecond=0).isoformat()
    if keyword == "last-modified":
        modified = datetime.fromtimestamp(Path(input_path).stat().st_mtime)
        return modified.date().isoformat()
    return value


def parse_pandoc_date(value: Any) -> datetime | None:
    """Parse a metadata date value, returning None when it is not recognised."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        pass
    for pattern in _INPUT_FORMATS:
        try:
            return datetime.strptime(candidate, pattern)
        except ValueError:
            continue
    return None


def format_date(value: datetime, style: str | None = "full") -> str:
    """Format a date using a named style or a token pattern (``MMMM D, YYYY``)."""
    locale = date_locale()
    style_name = style or "full"
    pattern = _LOCALE_STYLES.get(locale, {}).get(style_name) or _STYLES.get(style_name, style_name)
    months = _MONTHS.get(locale, _MONTHS["en"])
    weekdays = _WEEKDAYS.get(locale, _WEEKDAYS["en"])

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith("["):
            return token[1:-1]
        match token:
            case "YYYY":
                return f"{value.year:04d}"
            case "YY":
                return f"{value.year % 100:02d}"
            case "MMMM":
                return months[value.month - 1]
            case "MMM":
                return months[value.month - 1][:3]
            case "MM":
                return f"{value.month:02d}"
            case "M":
                return str(value.month)
            case "DD":
                return f"{value.day:02d}"
            case "D":
                return str(value.day)
            case "dddd":
                return weekdays[value.weekday()]
            case "ddd":
                return weekdays[value.weekday()][:3]
        return token

    return _TOKEN_RE.sub(_replace, pattern)


__all__ = [
    "SPECIAL_DATES",
    "date_locale",
    "format_date",
    "is_special_date",
    "parse_pandoc_date",
    "parse_special_date",
    "set_date_locale",
]
