"""
Natural-language date/time parsing.

Wraps ``dateparser.search.search_dates`` behind a small protocol so the
extraction engine only sees occurrences (offset, matched text, resolved
datetime). Explicit ISO timestamps take a regex fast path because the
search parser tends to split them into several fragments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from dateparser.search import search_dates

from voiceform.config import get_settings
from voiceform.logging_config import get_logger

logger = get_logger(__name__)

ISO_RX = re.compile(
    r"\b(?P<ymd>\d{4}-\d{2}-\d{2})(?:[T\s](?P<h>\d{2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?)?\b"
)


@dataclass(frozen=True)
class DateOccurrence:
    """A date found in text: where it starts, what matched, what it means."""
    start: int
    text: str
    value: datetime

    @property
    def end(self) -> int:
        return self.start + len(self.text)


class DateParser(Protocol):
    def parse(self, text: str) -> list[DateOccurrence]: ...


class DateparserSearch:
    """
    Default date parser backed by the ``dateparser`` package.

    Args:
        reference_time: Base for relative expressions ("tomorrow", "next
            Friday"). Pin it for reproducible results; None means now.
        languages, date_order, prefer_dates_from, timezone: Override the
            values from settings.
    """

    def __init__(
        self,
        reference_time: Optional[datetime] = None,
        languages: Optional[list[str]] = None,
        date_order: Optional[str] = None,
        prefer_dates_from: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.reference_time = reference_time
        self.languages = languages or list(settings.date_languages)
        self.date_order = date_order or settings.date_order
        self.prefer_dates_from = prefer_dates_from or settings.date_prefer_from
        self.timezone = timezone or settings.date_timezone

    def _parser_settings(self) -> dict[str, Any]:
        parser_settings: dict[str, Any] = {
            "DATE_ORDER": self.date_order,
            "PREFER_DATES_FROM": self.prefer_dates_from,
            "TIMEZONE": self.timezone,
            "RETURN_AS_TIMEZONE_AWARE": False,
            "STRICT_PARSING": False,
        }
        if self.reference_time is not None:
            parser_settings["RELATIVE_BASE"] = self.reference_time
        return parser_settings

    def parse(self, text: str) -> list[DateOccurrence]:
        if not text or not text.strip():
            return []

        found: list[DateOccurrence] = []
        masked = list(text)
        for m in ISO_RX.finditer(text):
            try:
                value = _iso_value(m)
            except ValueError:
                # Out-of-range (2024-13-45); left to the search parser
                continue
            found.append(DateOccurrence(start=m.start(), text=m.group(0), value=value))
            masked[m.start():m.end()] = " " * (m.end() - m.start())

        remaining = "".join(masked)
        if remaining.strip():
            found.extend(self._search(remaining))

        return sorted(found, key=lambda occ: occ.start)

    def _search(self, text: str) -> list[DateOccurrence]:
        try:
            hits = search_dates(text, languages=self.languages, settings=self._parser_settings())
        except Exception as e:
            logger.warning("date_parse_failed", error=str(e), transcript_length=len(text))
            return []

        occurrences: list[DateOccurrence] = []
        cursor = 0
        for matched, value in hits or []:
            idx = text.find(matched, cursor)
            if idx < 0:
                idx = text.find(matched)
            if idx < 0 or not matched.strip():
                logger.debug("date_offset_not_found", matched=matched)
                continue
            occurrences.append(DateOccurrence(start=idx, text=matched, value=value))
            cursor = idx + len(matched)
        return occurrences


def _iso_value(m: re.Match[str]) -> datetime:
    if m.group("h") is None:
        return datetime.strptime(m.group("ymd"), "%Y-%m-%d")
    return datetime.strptime(
        f"{m.group('ymd')} {m.group('h')}:{m.group('m')}:{m.group('s') or '00'}",
        "%Y-%m-%d %H:%M:%S",
    )


def format_for_field(value: datetime, field_type: str) -> str:
    """ISO-8601 rendering at the granularity of the target field."""
    if field_type == "date":
        return value.date().isoformat()
    if field_type == "time":
        return value.strftime("%H:%M")
    return value.isoformat(timespec="minutes")
