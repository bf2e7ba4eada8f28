"""Selection of the festival theme that wins on a given day."""
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, List, Optional

from festivals.models import ResolvedEvent, Schedule, ScheduleWindow

logger = logging.getLogger(__name__)

NONE_THEME = 'none'
LEVEL_FULL = 'full'
LEVEL_SUBTLE = 'subtle'
FULL_LEVEL_IMPORTANCES = frozenset({'religious_major', 'school'})

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
REQUIRED_FIELDS = ('id', 'name', 'importance', 'themeId', 'startDate', 'endDate')
MAX_WINDOW_DAYS = 366


@dataclass(frozen=True)
class ThemeSelection:
    """Theme to apply, and the event that produced it (if any)."""
    theme_id: str
    level: str
    event: Optional[ResolvedEvent] = None

    @property
    def event_id(self) -> Optional[str]:
        return self.event.id if self.event else None


NO_THEME = ThemeSelection(theme_id=NONE_THEME, level=LEVEL_SUBTLE)


def _parse_iso_date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_window_days(value: Any) -> bool:
    return _is_int(value) and 0 <= value <= MAX_WINDOW_DAYS


def parse_schedule(payload: Any) -> Optional[Schedule]:
    """
    Build a Schedule from a fetched artifact, dropping unusable entries.

    The artifact came over the network, so each entry is checked on its own:
    an entry with a missing field or a bad date is skipped instead of
    failing the whole schedule, and so is an entry whose padded window
    falls outside the representable calendar. A missing, negative or
    oversized window falls back to 5 days before and 2 days after.

    Args:
        payload: Decoded JSON artifact

    Returns:
        Schedule, or None if the payload is not an object
    """
    if not isinstance(payload, dict):
        logger.warning("Festival artifact is not a JSON object")
        return None

    raw_window = payload.get('window')
    if (
        isinstance(raw_window, dict)
        and _is_window_days(raw_window.get('daysBefore'))
        and _is_window_days(raw_window.get('daysAfter'))
    ):
        window = ScheduleWindow(
            days_before=raw_window['daysBefore'],
            days_after=raw_window['daysAfter']
        )
    else:
        window = ScheduleWindow()

    priority_order = payload.get('priorityOrder')
    if not isinstance(priority_order, list):
        priority_order = []

    raw_events = payload.get('resolvedEvents')
    if not isinstance(raw_events, list):
        raw_events = []

    events = []
    for raw in raw_events:
        event = _parse_event(raw, window)
        if event:
            events.append(event)
        else:
            logger.warning(f"Dropping malformed festival entry: {raw!r}")

    generated_at = payload.get('generatedAt')
    return Schedule(
        generated_at=generated_at if isinstance(generated_at, str) else '',
        window=window,
        priority_order=[item for item in priority_order if isinstance(item, str)],
        resolved_events=events
    )


def _parse_event(raw: Any, window: ScheduleWindow) -> Optional[ResolvedEvent]:
    if not isinstance(raw, dict):
        return None
    if not all(isinstance(raw.get(name), str) and raw.get(name) for name in REQUIRED_FIELDS):
        return None
    start = _parse_iso_date(raw['startDate'])
    end = _parse_iso_date(raw['endDate'])
    if start is None or end is None:
        return None
    if active_range(start, end, window) is None:
        return None
    return ResolvedEvent(
        id=raw['id'],
        name=raw['name'],
        importance=raw['importance'],
        theme_id=raw['themeId'],
        start_date=raw['startDate'],
        end_date=raw['endDate']
    )


def active_range(start: date, end: date, window: ScheduleWindow) -> Optional[tuple[date, date]]:
    """Return the padded (first, last) active day, or None if it leaves the calendar."""
    try:
        return (
            start - timedelta(days=window.days_before),
            end + timedelta(days=window.days_after)
        )
    except OverflowError:
        return None


def is_active(event: ResolvedEvent, today: date, window: ScheduleWindow) -> bool:
    """
    Check whether today falls inside the event's padded window.

    Args:
        event: Resolved event with valid ISO dates
        today: Day being evaluated
        window: Lead and trail days

    Returns:
        True if start - days_before <= today <= end + days_after
    """
    bounds = active_range(
        date.fromisoformat(event.start_date), date.fromisoformat(event.end_date), window
    )
    if bounds is None:
        return False
    return bounds[0] <= today <= bounds[1]


def level_for(event: ResolvedEvent) -> str:
    """Return the display level for a winning event."""
    if event.theme_id == NONE_THEME:
        return LEVEL_SUBTLE
    if event.importance in FULL_LEVEL_IMPORTANCES:
        return LEVEL_FULL
    return LEVEL_SUBTLE


def active_events(schedule: Schedule, today: date) -> List[ResolvedEvent]:
    """Return events whose active window contains today."""
    return [
        event for event in schedule.resolved_events
        if is_active(event, today, schedule.window)
    ]


def select_winner(schedule: Optional[Schedule], today: Optional[date] = None) -> ThemeSelection:
    """
    Pick the festival theme for a day.

    Active events are ranked by their importance's position in the
    priority order (unlisted importances last), then by how many days
    their start is from today, then by id. The ranking never depends on
    input order.

    Args:
        schedule: Parsed schedule, or None if it could not be loaded
        today: Day being evaluated (default: the local current date)

    Returns:
        ThemeSelection for the winner, or NO_THEME if nothing is active
    """
    if schedule is None:
        return NO_THEME

    today = today or date.today()
    candidates = active_events(schedule, today)
    if not candidates:
        return NO_THEME

    ranks = {}
    for index, importance in enumerate(schedule.priority_order):
        ranks.setdefault(importance, index)
    unlisted_rank = len(schedule.priority_order)

    def rank_key(event: ResolvedEvent):
        distance = abs((date.fromisoformat(event.start_date) - today).days)
        return (ranks.get(event.importance, unlisted_rank), distance, event.id)

    winner = min(candidates, key=rank_key)
    return ThemeSelection(theme_id=winner.theme_id, level=level_for(winner), event=winner)
