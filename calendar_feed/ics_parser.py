"""Minimal ICS parser for VEVENT summaries and date ranges."""
import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from festivals.models import RawIcsEvent

logger = logging.getLogger(__name__)

ICS_DATE_PATTERN = re.compile(r'(\d{4})(\d{2})(\d{2})')


def unfold_lines(text: str) -> List[str]:
    """
    Join folded ICS content lines into logical lines.

    A line starting with a space or tab continues the previous line; the
    single leading whitespace character is dropped.

    Args:
        text: Raw ICS text

    Returns:
        List of logical lines
    """
    unfolded = []

    for line in re.split(r'\r?\n', text):
        if line.startswith((' ', '\t')):
            if unfolded:
                unfolded[-1] += line[1:]
        else:
            unfolded.append(line)

    return unfolded


def parse_ics_date(value: str) -> Optional[date]:
    """
    Extract the first YYYYMMDD sequence from an ICS date value.

    Time of day and UTC suffixes are ignored.

    Args:
        value: DTSTART/DTEND property value

    Returns:
        date object or None if no valid date is found
    """
    if not value:
        return None

    match = ICS_DATE_PATTERN.search(value)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Ignoring impossible ICS date: {value}")
        return None


def split_property(line: str) -> tuple[str, str, str]:
    """
    Split a content line into key, parameters and value.

    Only the first colon separates the value, so values may contain colons.

    Args:
        line: Logical ICS line (e.g. "DTSTART;VALUE=DATE:20240301")

    Returns:
        Tuple of (key, params, value)
    """
    name, _, value = line.partition(':')
    key, _, params = name.partition(';')
    return key, params, value.strip()


def is_date_value(params: str) -> bool:
    """Return True when the property parameters include VALUE=DATE."""
    return any(
        param.strip().upper() == 'VALUE=DATE'
        for param in params.split(';')
    )


def parse_ics_events(text: str) -> List[RawIcsEvent]:
    """
    Extract events from ICS text.

    Blocks without a summary or a parseable start date are dropped. Events
    without an end date last one day, and an all-day end date (exclusive in
    ICS) is moved back one day so the range is inclusive.

    Args:
        text: Raw ICS text

    Returns:
        List of RawIcsEvent objects with end_date always set
    """
    events = []
    current = None

    for line in unfold_lines(text):
        if line == 'BEGIN:VEVENT':
            current = {}
            continue

        if line == 'END:VEVENT':
            if current and current.get('summary') and current.get('start_date'):
                events.append(RawIcsEvent(**current))
            current = None
            continue

        if current is None or ':' not in line:
            continue

        key, params, value = split_property(line)

        if key == 'SUMMARY':
            current['summary'] = value
        elif key == 'DTSTART':
            start_date = parse_ics_date(value)
            if start_date:
                current['start_date'] = start_date
                current['is_all_day'] = is_date_value(params)
        elif key == 'DTEND':
            end_date = parse_ics_date(value)
            if end_date:
                current['end_date'] = end_date
                current['is_end_all_day'] = is_date_value(params)

    normalized = []
    for event in events:
        if event.end_date is None:
            event.end_date = event.start_date
        elif event.is_end_all_day:
            try:
                event.end_date = event.end_date - timedelta(days=1)
            except OverflowError:
                logger.debug(f"Ignoring event with out-of-range end date: {event.summary}")
                continue
        normalized.append(event)

    logger.debug(f"Parsed {len(normalized)} events from ICS feed")
    return normalized
