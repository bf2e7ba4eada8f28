"""Loading and validation of the festival rule document."""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from festivals.models import (
    CalendarMatchRule,
    DateRule,
    FixedRule,
    Rule,
    RuleSet,
    ScheduleWindow,
)

logger = logging.getLogger(__name__)

MAX_WINDOW_DAYS = 366


class RuleValidationError(ValueError):
    """Raised when the rule document is structurally invalid."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise RuleValidationError(f"Invalid festivals.json: {message}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def load_rules(path: str) -> RuleSet:
    """
    Read and validate a rule document from disk.

    Args:
        path: Path to the JSON rule document

    Returns:
        Validated RuleSet

    Raises:
        OSError: If the file cannot be read
        RuleValidationError: If the document is not valid JSON or is
            structurally invalid
    """
    logger.info(f"Loading festival rules from {path}")
    with open(path, encoding='utf-8') as f:
        raw = f.read()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RuleValidationError(f"Invalid festivals.json: {e}") from e

    rule_set = parse_rules(data)
    logger.info(f"Loaded {len(rule_set.rules)} festival rules")
    return rule_set


def validate_rules_data(data: Any) -> None:
    """
    Check the structure of a decoded rule document.

    Args:
        data: Decoded JSON document

    Raises:
        RuleValidationError: On the first structural violation found
    """
    _require(isinstance(data, dict), 'root object is missing.')

    window = data.get('window')
    _require(isinstance(window, dict), '`window` is missing.')
    _require(
        _is_int(window.get('daysBefore')) and _is_int(window.get('daysAfter')),
        '`window.daysBefore` and `window.daysAfter` must be integers.'
    )
    _require(
        all(0 <= window[key] <= MAX_WINDOW_DAYS for key in ('daysBefore', 'daysAfter')),
        f"`window` values must be between 0 and {MAX_WINDOW_DAYS} days."
    )
    _require(isinstance(data.get('priorityOrder'), list), '`priorityOrder` must be an array.')
    _require(
        all(_is_text(item) for item in data['priorityOrder']),
        '`priorityOrder` entries must be non-empty strings.'
    )
    _require(isinstance(data.get('events'), list), '`events` must be an array.')

    for index, event in enumerate(data['events']):
        _require(isinstance(event, dict), f"event at index {index} must be an object.")
        _require(
            _is_text(event.get('id')) and _is_text(event.get('name')),
            f"event at index {index} must include id and name as non-empty strings."
        )
        event_id = event['id']
        for field in ('importance', 'themeId'):
            _require(
                _is_text(event.get(field)),
                f"event {event_id} missing {field} (non-empty string required)."
            )
        date_rule = event.get('dateRule')
        _require(
            isinstance(date_rule, dict) and _is_text(date_rule.get('type')),
            f"event {event_id} missing dateRule."
        )


def parse_rules(data: Any) -> RuleSet:
    """
    Validate a decoded rule document and build typed rules from it.

    Args:
        data: Decoded JSON document

    Returns:
        RuleSet with compiled date rules

    Raises:
        RuleValidationError: If the document or any date rule is invalid
    """
    validate_rules_data(data)

    rules: List[Rule] = []
    seen_ids = set()
    for event in data['events']:
        # Rule ids are unique; resolved entries may repeat once per year.
        _require(event['id'] not in seen_ids, f"duplicate event id {event['id']}.")
        seen_ids.add(event['id'])

        date_rule = _parse_date_rule(event['id'], event['dateRule'])
        if date_rule is None:
            continue

        rules.append(Rule(
            id=event['id'],
            name=event['name'],
            importance=event['importance'],
            theme_id=event['themeId'],
            date_rule=date_rule
        ))

    window = ScheduleWindow(
        days_before=data['window']['daysBefore'],
        days_after=data['window']['daysAfter']
    )
    return RuleSet(
        window=window,
        priority_order=list(data['priorityOrder']),
        rules=rules
    )


def _parse_date_rule(event_id: str, date_rule: Dict[str, Any]) -> Optional[DateRule]:
    """
    Build the typed date rule for one event.

    Args:
        event_id: Id of the owning event, used in error messages
        date_rule: Raw dateRule object

    Returns:
        CalendarMatchRule, FixedRule, or None for unsupported rule types
    """
    rule_type = date_rule['type']

    if rule_type == 'calendar':
        pattern = date_rule.get('calendarMatch')
        _require(
            isinstance(pattern, str) and bool(pattern),
            f"event {event_id} missing calendarMatch."
        )
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            raise RuleValidationError(
                f"Invalid calendarMatch regex for {event_id}: {e}"
            ) from e
        return CalendarMatchRule(pattern=compiled)

    if rule_type == 'fixed':
        month = date_rule.get('month')
        day = date_rule.get('day')
        _require(
            _is_int(month) and 1 <= month <= 12,
            f"event {event_id} fixed month must be an integer from 1 to 12."
        )
        _require(
            _is_int(day) and 1 <= day <= 31,
            f"event {event_id} fixed day must be an integer from 1 to 31."
        )
        return FixedRule(month=month, day=day)

    logger.warning(f"Skipping event {event_id}: unsupported dateRule type '{rule_type}'")
    return None
