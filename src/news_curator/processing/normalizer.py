"""Turn raw feed entries into normalized articles."""

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from bs4 import BeautifulSoup

from news_curator.models import Article, RawEntry, SummaryFormat

logger = logging.getLogger(__name__)

_NON_SPACE_WHITESPACE = re.compile(r"[^\S ]+")
_SPACES = re.compile(r" {2,}")
_NON_PRINTABLE = re.compile(r"[^\x20-\x7e]")
_MAX_MARKUP_PASSES = 3


def strip_html(fragment: str) -> str:
    """Join the text nodes of an HTML fragment in document order.

    Feeds that escape their markup twice decode to text that still holds tags;
    those are stripped too, a bounded number of times.
    """
    if not fragment:
        return ""
    text = BeautifulSoup(fragment, "html.parser").get_text(" ")
    for _ in range(_MAX_MARKUP_PASSES):
        soup = BeautifulSoup(text, "html.parser")
        if soup.find() is None:
            break
        text = soup.get_text(" ")
    return text


def collapse_whitespace(text: str) -> str:
    """Turn tabs/newlines into spaces and squeeze runs of spaces."""
    text = _NON_SPACE_WHITESPACE.sub(" ", text)
    return _SPACES.sub(" ", text).strip()


def to_printable_ascii(text: str) -> str:
    """Drop every character outside printable ASCII."""
    return _NON_PRINTABLE.sub("", text)


def clean_text(text: str) -> str:
    """Full text cleanup applied to titles and bodies."""
    # Dropping characters can leave double spaces behind, so collapse last.
    return collapse_whitespace(to_printable_ascii(collapse_whitespace(text)))


def parse_date(value: datetime | str | None) -> datetime | None:
    """Parse a feed timestamp into an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), RFC 822 strings as used by
    RSS, and ISO 8601 strings as used by Atom. Returns None when unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        value = value.strip()
        if not value:
            return None
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Normalizer:
    """Normalize raw entries into immutable articles."""

    def normalize(self, entry: RawEntry) -> Article | None:
        """Normalize one entry.

        Args:
            entry: Raw entry from a feed

        Returns:
            Article, or None when the entry has no usable date or identity
        """
        update_date = parse_date(entry.published)
        if update_date is None:
            logger.debug(f"Dropping entry without a valid date: {entry.link or entry.uid}")
            return None

        uid = entry.uid or entry.link
        if not uid:
            logger.debug(f"Dropping entry without guid or link from {entry.source_url}")
            return None

        summary = entry.summary
        if entry.summary_format == SummaryFormat.HTML:
            summary = strip_html(summary)

        return Article(
            uid=uid,
            title_text=clean_text(entry.title),
            main_text=clean_text(summary),
            update_date=update_date,
            redirection_url=(entry.link or "").strip(),
        )

    def normalize_all(self, entries: list[RawEntry]) -> list[Article]:
        """Normalize entries, dropping the ones that cannot be ranked."""
        articles = []
        for entry in entries:
            article = self.normalize(entry)
            if article is not None:
                articles.append(article)

        dropped = len(entries) - len(articles)
        if dropped:
            logger.info(f"Normalization dropped {dropped} of {len(entries)} entries")
        return articles
