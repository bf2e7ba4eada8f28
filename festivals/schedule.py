"""Assembly, validation and serialization of the resolved schedule."""
import json
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from festivals.models import ResolvedEvent, RuleSet, Schedule

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class ScheduleValidationError(ValueError):
    """Raised when a resolved event does not have the published shape."""


def format_generated_at(moment: datetime) -> str:
    """
    Format a timestamp as UTC ISO-8601 with milliseconds and a Z suffix.

    Args:
        moment: Timezone-aware or naive (assumed UTC) datetime

    Returns:
        String such as "2024-06-01T08:30:00.000Z"
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}Z"


def validate_resolved_events(events: List[ResolvedEvent]) -> None:
    """
    Check every resolved event has its fields and YYYY-MM-DD dates.

    Args:
        events: Resolved events about to be published

    Raises:
        ScheduleValidationError: On the first malformed event
    """
    if not isinstance(events, list):
        raise ScheduleValidationError('Resolved events must be an array.')

    for event in events:
        if not (event.id and event.name and event.importance and event.theme_id):
            raise ScheduleValidationError(
                f"Resolved event missing fields: {json.dumps(event.to_dict())}"
            )
        if not (
            isinstance(event.start_date, str) and ISO_DATE_PATTERN.match(event.start_date)
            and isinstance(event.end_date, str) and ISO_DATE_PATTERN.match(event.end_date)
        ):
            raise ScheduleValidationError(f"Resolved event has invalid dates: {event.id}")


def build_schedule(
    rule_set: RuleSet,
    resolved_events: List[ResolvedEvent],
    generated_at: Optional[datetime] = None
) -> Schedule:
    """
    Validate resolved events and wrap them in the published artifact.

    Args:
        rule_set: Rule set the events were resolved from
        resolved_events: Output of DateRuleResolver.resolve
        generated_at: Build timestamp (default: now)

    Returns:
        Schedule with events sorted by (start_date, id)

    Raises:
        ScheduleValidationError: If any event is malformed
    """
    ordered = sorted(resolved_events, key=lambda event: (event.start_date, event.id))
    validate_resolved_events(ordered)

    schedule = Schedule(
        generated_at=format_generated_at(generated_at or datetime.now(timezone.utc)),
        window=rule_set.window,
        priority_order=list(rule_set.priority_order),
        resolved_events=ordered
    )
    logger.info(f"Built schedule with {len(ordered)} resolved events")
    return schedule


def serialize_schedule(schedule: Schedule) -> str:
    """Render the schedule as indented JSON with a trailing newline."""
    return json.dumps(schedule.to_dict(), indent=2, ensure_ascii=False) + '\n'
