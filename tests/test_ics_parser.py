"""Unit tests for the ICS parser."""
from datetime import date

from calendar_feed.ics_parser import (
    is_date_value,
    parse_ics_date,
    parse_ics_events,
    split_property,
    unfold_lines,
)


def _calendar(*blocks):
    lines = ['BEGIN:VCALENDAR', 'VERSION:2.0']
    for block in blocks:
        lines.append('BEGIN:VEVENT')
        lines.extend(block)
        lines.append('END:VEVENT')
    lines.append('END:VCALENDAR')
    return '\r\n'.join(lines) + '\r\n'


class TestUnfoldLines:
    """Test cases for line unfolding."""

    def test_continuation_with_space_is_merged(self):
        lines = unfold_lines('SUMMARY:Easter\r\n  Sunday Service\r\nEND:VEVENT')

        assert lines == ['SUMMARY:Easter Sunday Service', 'END:VEVENT']

    def test_continuation_with_tab_is_merged(self):
        lines = unfold_lines('SUMMARY:St Patr\n\tick\'s Day')

        assert lines == ["SUMMARY:St Patrick's Day"]

    def test_lines_without_leading_whitespace_are_not_merged(self):
        lines = unfold_lines('BEGIN:VEVENT\nSUMMARY:Diwali\nEND:VEVENT')

        assert lines == ['BEGIN:VEVENT', 'SUMMARY:Diwali', 'END:VEVENT']

    def test_leading_continuation_is_ignored(self):
        lines = unfold_lines(' orphan\nSUMMARY:Holi')

        assert lines == ['SUMMARY:Holi']

    def test_multiple_continuations(self):
        lines = unfold_lines('DESCRIPTION:a\n b\n c')

        assert lines == ['DESCRIPTION:abc']


class TestPropertyHelpers:
    """Test cases for property splitting and date parsing."""

    def test_split_property_keeps_colons_in_value(self):
        key, params, value = split_property('DESCRIPTION;LANGUAGE=en:Starts at 10:30: bring food')

        assert key == 'DESCRIPTION'
        assert params == 'LANGUAGE=en'
        assert value == 'Starts at 10:30: bring food'

    def test_split_property_without_params(self):
        assert split_property('SUMMARY:Eid al-Fitr') == ('SUMMARY', '', 'Eid al-Fitr')

    def test_parse_ics_date_accepts_time_and_utc_suffix(self):
        assert parse_ics_date('20240331T090000Z') == date(2024, 3, 31)

    def test_parse_ics_date_rejects_garbage(self):
        assert parse_ics_date('tomorrow') is None
        assert parse_ics_date('') is None
        assert parse_ics_date('20241345') is None

    def test_is_date_value(self):
        assert is_date_value('VALUE=DATE')
        assert is_date_value('TZID=Europe/London;VALUE=DATE')
        assert not is_date_value('VALUE=DATE-TIME')
        assert not is_date_value('')


class TestParseIcsEvents:
    """Test cases for VEVENT extraction."""

    def test_all_day_end_date_is_made_inclusive(self):
        text = _calendar([
            'SUMMARY:Spring Break',
            'DTSTART;VALUE=DATE:20240301',
            'DTEND;VALUE=DATE:20240305',
        ])

        events = parse_ics_events(text)

        assert len(events) == 1
        assert events[0].start_date == date(2024, 3, 1)
        assert events[0].end_date == date(2024, 3, 4)
        assert events[0].is_all_day is True
        assert events[0].is_end_all_day is True

    def test_missing_end_defaults_to_start(self):
        text = _calendar(['SUMMARY:Pentecost', 'DTSTART;VALUE=DATE:20240519'])

        events = parse_ics_events(text)

        assert events[0].end_date == date(2024, 5, 19)

    def test_timed_end_is_not_shifted(self):
        text = _calendar([
            'SUMMARY:Carol Service',
            'DTSTART:20241222T180000Z',
            'DTEND:20241222T200000Z',
        ])

        events = parse_ics_events(text)

        assert events[0].start_date == date(2024, 12, 22)
        assert events[0].end_date == date(2024, 12, 22)
        assert events[0].is_all_day is False

    def test_end_flag_is_independent_of_start_flag(self):
        text = _calendar([
            'SUMMARY:Retreat',
            'DTSTART:20240610T090000',
            'DTEND;VALUE=DATE:20240613',
        ])

        events = parse_ics_events(text)

        assert events[0].is_all_day is False
        assert events[0].end_date == date(2024, 6, 12)

    def test_events_without_summary_or_start_are_dropped(self):
        text = _calendar(
            ['DTSTART;VALUE=DATE:20240101'],
            ['SUMMARY:No date'],
            ['SUMMARY:Bad date', 'DTSTART:soon'],
            ['SUMMARY:Epiphany', 'DTSTART;VALUE=DATE:20240106'],
        )

        events = parse_ics_events(text)

        assert [event.summary for event in events] == ['Epiphany']

    def test_folded_summary_and_other_properties(self):
        text = _calendar([
            'UID:abc@example.com',
            'SUMMARY:Easter Sunday',
            '  Service',
            'LOCATION:Main Hall',
            'DTSTART;VALUE=DATE:20250420',
            'RRULE:FREQ=YEARLY',
        ])

        events = parse_ics_events(text)

        assert events[0].summary == 'Easter Sunday Service'
        assert events[0].start_date == date(2025, 4, 20)

    def test_properties_outside_events_are_ignored(self):
        text = 'SUMMARY:Calendar name\nDTSTART:20240101\n' + _calendar(
            ['SUMMARY:Advent Sunday', 'DTSTART;VALUE=DATE:20241201']
        )

        events = parse_ics_events(text)

        assert len(events) == 1
        assert events[0].summary == 'Advent Sunday'

    def test_malformed_input_does_not_raise(self):
        assert parse_ics_events('') == []
        assert parse_ics_events('BEGIN:VEVENT\nSUMMARY') == []
        assert parse_ics_events('END:VEVENT\nBEGIN:VEVENT\nSUMMARY:x') == []

    def test_all_day_end_at_calendar_start_is_dropped(self):
        text = _calendar(
            ['SUMMARY:x', 'DTSTART;VALUE=DATE:00010101', 'DTEND;VALUE=DATE:00010101'],
            ['SUMMARY:Epiphany', 'DTSTART;VALUE=DATE:20240106'],
        )

        events = parse_ics_events(text)

        assert [event.summary for event in events] == ['Epiphany']
