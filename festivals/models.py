"""Data models for festival rules and resolved schedules."""
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union


@dataclass
class RawIcsEvent:
    """Event extracted from a single VEVENT block."""
    summary: str
    start_date: date
    end_date: Optional[date] = None
    is_all_day: bool = False
    is_end_all_day: bool = False


@dataclass(frozen=True)
class CalendarMatchRule:
    """Match the soonest future calendar event whose summary fits the pattern."""
    pattern: re.Pattern


@dataclass(frozen=True)
class FixedRule:
    """Same month and day every year."""
    month: int
    day: int


DateRule = Union[CalendarMatchRule, FixedRule]


@dataclass(frozen=True)
class Rule:
    """Declarative description of one observance."""
    id: str
    name: str
    importance: str
    theme_id: str
    date_rule: DateRule


@dataclass(frozen=True)
class ScheduleWindow:
    """Lead and trail days around an event during which it may win."""
    days_before: int = 5
    days_after: int = 2

    def to_dict(self) -> dict:
        return {'daysBefore': self.days_before, 'daysAfter': self.days_after}


@dataclass(frozen=True)
class RuleSet:
    """Validated rule document."""
    window: ScheduleWindow
    priority_order: List[str]
    rules: List[Rule]


@dataclass(frozen=True)
class ResolvedEvent:
    """Concrete date range for one rule."""
    id: str
    name: str
    importance: str
    theme_id: str
    start_date: str
    end_date: str

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'importance': self.importance,
            'themeId': self.theme_id,
            'startDate': self.start_date,
            'endDate': self.end_date
        }


@dataclass(frozen=True)
class Schedule:
    """Published artifact consumed by the theme runtime."""
    generated_at: str
    window: ScheduleWindow
    priority_order: List[str]
    resolved_events: List[ResolvedEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'generatedAt': self.generated_at,
            'window': self.window.to_dict(),
            'priorityOrder': list(self.priority_order),
            'resolvedEvents': [event.to_dict() for event in self.resolved_events]
        }
