"""
RSS 2.0 feed renderer.

Items come either from a list of RssItem or from a source exposing the
columns TITLE, LINK, DESCRIPTION, AUTHOR, CATEGORY and PUBDATE. Title,
description and category are wrapped in CDATA verbatim. Link, author and
dates are written as raw text, so links must already be ampersand-encoded.
Empty item fields are omitted and ``guid`` repeats the item link.

Example output:

    <?xml version="1.0" encoding="utf-8"?>
    <rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
      <channel>
        <title><![CDATA[News]]></title>
        ...
        <item><title><![CDATA[First]]></title>...</item>
      </channel>
    </rss>
"""

from collections.abc import Iterator, Sequence
from datetime import datetime
from email.utils import format_datetime

from pydantic import ValidationError

from tabular_exchange.adapters.output_sink import Sink, write_text
from tabular_exchange.exceptions.exchange_exceptions import InvalidRowError
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import RssItem, ValueKind
from tabular_exchange.normalizer import cdata
from tabular_exchange.sources import TabularSource, open_source

logger = get_logger(__name__)

ITEM_COLUMNS = ("TITLE", "LINK", "DESCRIPTION", "AUTHOR", "CATEGORY")
PUBDATE_COLUMN = "PUBDATE"

FeedItems = Sequence[RssItem] | TabularSource


def rfc822(moment: datetime) -> str:
    """Format ``moment`` as ``Mon, 05 Jan 2026 10:00:00 +0900``; naive values are local time."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return format_datetime(moment)


def _present(value: str | None) -> bool:
    return value is not None and value != ""


def render_item(item: RssItem, strip_description_newlines: bool = False) -> str:
    """Render one ``<item>`` line, indented for the channel."""
    parts = ["    <item>"]
    if _present(item.title):
        parts.append("<title>" + cdata(item.title) + "</title>")
    if _present(item.link):
        parts.append("<link>" + item.link + "</link>")
    if _present(item.description):
        description = item.description
        if strip_description_newlines:
            description = description.replace("\r\n", "").replace("\n", "")
        parts.append("<description>" + cdata(description) + "</description>")
    if _present(item.author):
        parts.append("<author>" + item.author + "</author>")
    if _present(item.category):
        parts.append("<category>" + cdata(item.category) + "</category>")
    if _present(item.link):
        parts.append("<guid>" + item.link + "</guid>")
    if item.pub_date is not None:
        parts.append("<pubDate>" + rfc822(item.pub_date) + "</pubDate>")
    parts.append("</item>")
    return "".join(parts)


def items_from_source(source: TabularSource) -> Iterator[RssItem]:
    """
    Yield one RssItem per source row.

    Raises:
        InvalidRowError: If a PUBDATE value is not a date.
    """
    source.reset()
    row = 0
    while source.advance():
        row += 1
        fields = {}
        for column in ITEM_COLUMNS:
            value = source.value_of(column)
            fields[column.lower()] = None if value.kind is ValueKind.ABSENT else value.text
        fields["pub_date"] = source.raw_value(PUBDATE_COLUMN)
        try:
            yield RssItem.model_validate(fields)
        except ValidationError as e:
            raise InvalidRowError(row, str(e)) from e


def _render(
    items: FeedItems,
    encoding: str,
    title: str,
    link: str,
    description: str,
    web_master: str | None,
    language: str,
    strip_description_newlines: bool,
) -> tuple[str, int]:
    lines = [
        f'<?xml version="1.0" encoding="{encoding}"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "  <channel>",
        "    <title>" + cdata(title) + "</title>",
        "    <link>" + link + "</link>",
        "    <description>" + cdata(description) + "</description>",
        "    <language>" + language + "</language>",
        '    <atom:link href="' + link + '" rel="self" type="application/rss+xml"/>',
        "    <pubDate>" + rfc822(datetime.now().astimezone()) + "</pubDate>",
    ]
    if web_master:
        lines.append("    <webMaster>" + web_master + "</webMaster>")

    count = 0
    if isinstance(items, Sequence):
        for item in items:
            lines.append(render_item(item, strip_description_newlines))
            count += 1
    else:
        with open_source(items):
            for item in items_from_source(items):
                lines.append(render_item(item, strip_description_newlines))
                count += 1

    lines.append("  </channel>")
    lines.append("</rss>")
    return "\n".join(lines) + "\n", count


def render_feed(
    items: FeedItems | None,
    encoding: str = "utf-8",
    title: str = "",
    link: str = "",
    description: str = "",
    web_master: str | None = None,
    language: str = "ko",
    strip_description_newlines: bool = False,
) -> str | None:
    """
    Render an RSS 2.0 document.

    Args:
        items: RssItem list or a source with the item columns.
        encoding: Encoding named in the XML declaration.
        title: Channel title.
        link: Channel link, also used for the ``atom:link`` self reference.
        description: Channel description.
        web_master: Optional webmaster address.
        language: Channel language code.
        strip_description_newlines: Remove line breaks from item descriptions.

    Returns:
        The feed text, or None when ``items`` is None.
    """
    if items is None:
        return None
    text, _ = _render(
        items, encoding, title, link, description, web_master, language, strip_description_newlines
    )
    return text


def write_feed(
    items: FeedItems | None,
    sink: Sink,
    encoding: str = "utf-8",
    title: str = "",
    link: str = "",
    description: str = "",
    web_master: str | None = None,
    language: str = "ko",
    strip_description_newlines: bool = False,
) -> int:
    """Render the feed into ``sink`` using ``encoding`` and return the item count."""
    if items is None:
        return 0
    text, count = _render(
        items, encoding, title, link, description, web_master, language, strip_description_newlines
    )
    write_text(text, sink, encoding=encoding)
    logger.info("Wrote feed with %d items", count)
    return count
