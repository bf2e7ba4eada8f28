"""Resolution of festival date rules into concrete date ranges."""
import calendar
import logging
from datetime import date, timedelta
from typing import List, Optional

from festivals.models import (
    CalendarMatchRule,
    FixedRule,
    RawIcsEvent,
    ResolvedEvent,
    Rule,
)

logger = logging.getLogger(__name__)


def add_months(value: date, months: int) -> date:
    """
    Shift a date by whole months, clamping to the last day of the month.

    Args:
        value: Starting date
        months: Number of months to add

    Returns:
        Shifted date (e.g. 2024-08-31 + 18 months -> 2026-02-28)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def fixed_date(year: int, month: int, day: int) -> date:
    """Build a date, rolling days past the end of the month into the next one."""
    return date(year, month, 1) + timedelta(days=day - 1)


class DateRuleResolver:
    """Turns rules plus calendar events into resolved date ranges."""

    LOOKAHEAD_MONTHS = 18

    def __init__(self, today: Optional[date] = None, lookahead_months: int = LOOKAHEAD_MONTHS):
        """
        Initialize the resolver.

        Args:
            today: Reference day (default: the local current date)
            lookahead_months: How far ahead calendar rules may match
        """
        self.today = today or date.today()
        self.lookahead_months = lookahead_months
        self.window_end = add_months(self.today, lookahead_months)

    def resolve(self, rules: List[Rule], ics_events: List[RawIcsEvent]) -> List[ResolvedEvent]:
        """
        Resolve every rule and return the combined, sorted result.

        Args:
            rules: Validated rules
            ics_events: Events parsed from the calendar feed

        Returns:
            ResolvedEvent list sorted by (start_date, id)
        """
        resolved = []

        for rule in rules:
            if isinstance(rule.date_rule, CalendarMatchRule):
                event = self.resolve_calendar_rule(rule, ics_events)
                if event:
                    resolved.append(event)
                else:
                    logger.info(
                        f"No calendar match for {rule.id} between "
                        f"{self.today.isoformat()} and {self.window_end.isoformat()}"
                    )
            elif isinstance(rule.date_rule, FixedRule):
                resolved.extend(self.resolve_fixed_rule(rule))

        resolved.sort(key=lambda event: (event.start_date, event.id))
        logger.info(f"Resolved {len(resolved)} events from {len(rules)} rules")
        return resolved

    def resolve_calendar_rule(
        self, rule: Rule, ics_events: List[RawIcsEvent]
    ) -> Optional[ResolvedEvent]:
        """
        Pick the soonest matching event inside the lookahead window.

        Args:
            rule: Rule with a CalendarMatchRule
            ics_events: Events parsed from the calendar feed

        Returns:
            ResolvedEvent or None if nothing matches in the window
        """
        pattern = rule.date_rule.pattern
        matches = [
            event for event in ics_events
            if pattern.search(event.summary or '')
            and self.today <= event.start_date <= self.window_end
        ]
        if not matches:
            return None

        # sorted() is stable, so equal start dates keep feed order
        next_event = sorted(matches, key=lambda event: event.start_date)[0]
        return self._build_resolved_event(
            rule, next_event.start_date, next_event.end_date or next_event.start_date
        )

    def resolve_fixed_rule(self, rule: Rule) -> List[ResolvedEvent]:
        """
        Build single-day entries for the current and the next year.

        Args:
            rule: Rule with a FixedRule

        Returns:
            Exactly two ResolvedEvent objects
        """
        resolved = []
        for year in (self.today.year, self.today.year + 1):
            day = fixed_date(year, rule.date_rule.month, rule.date_rule.day)
            resolved.append(self._build_resolved_event(rule, day, day))
        return resolved

    def _build_resolved_event(self, rule: Rule, start_date: date, end_date: date) -> ResolvedEvent:
        return ResolvedEvent(
            id=rule.id,
            name=rule.name,
            importance=rule.importance,
            theme_id=rule.theme_id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )
