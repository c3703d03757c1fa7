import warnings

import pytest
from datetime import date
from courtside.exceptions import InvalidInterval, RecurrenceBoundsExceeded
from courtside.utils.intervals import DateInterval
from courtside.utils.recurrence import (
    RecurrencePattern, RecurrenceRule, add_months, decode_rule, describe_rule,
    encode_rule, expand, js_weekday, rule_from_dict
)


def origin(on, start='18:00', end='19:00'):
    return DateInterval.parse(on, start, end)


class TestExpand:
    """Expanding a rule into occurrences"""

    def test_none_yields_origin_regardless_of_cap(self):
        first = origin('2025-01-06')
        for cap in (1, 5, 366):
            occurrences = expand(first, RecurrenceRule(), cap)
            assert list(occurrences) == [first]
            assert not occurrences.truncated

    def test_daily_until_end_date_inclusive(self):
        rule = RecurrenceRule(RecurrencePattern.DAILY, end_date=date(2025, 1, 10))
        dates = [occ.date for occ in expand(origin('2025-01-06'), rule)]
        assert dates == [date(2025, 1, d) for d in range(6, 11)]

    def test_daily_with_interval(self):
        rule = RecurrenceRule('daily', interval=3, end_date=date(2025, 1, 15))
        dates = [occ.date.day for occ in expand(origin('2025-01-06'), rule)]
        assert dates == [6, 9, 12, 15]

    def test_occurrences_keep_time_of_day(self):
        rule = RecurrenceRule('weekly', end_date=date(2025, 2, 3))
        for occ in expand(origin('2025-01-06', '07:15', '08:45'), rule):
            assert (occ.start, occ.end) == (435, 525)

    def test_weekly_mondays_capped_at_52(self):
        rule = RecurrenceRule(RecurrencePattern.WEEKLY)
        with pytest.warns(RecurrenceBoundsExceeded):
            occurrences = expand(origin('2025-01-06'), rule, hard_cap=52)

        assert len(occurrences) == 52
        assert occurrences.truncated
        assert all(occ.date.weekday() == 0 for occ in occurrences)
        assert occurrences[-1].date == date(2025, 12, 29)

    def test_rule_ending_exactly_at_cap_is_not_truncated(self):
        rule = RecurrenceRule('weekly', end_date=date(2025, 1, 27))
        with warnings.catch_warnings():
            warnings.simplefilter('error')
            occurrences = expand(origin('2025-01-06'), rule, hard_cap=4)
        assert len(occurrences) == 4
        assert not occurrences.truncated

    def test_weekly_on_listed_days(self):
        # Mondays and Wednesdays every other week, starting on a Monday
        rule = RecurrenceRule('weekly', interval=2, days_of_week=(1, 3), end_date=date(2025, 2, 5))
        dates = [occ.date for occ in expand(origin('2025-01-06'), rule)]
        assert dates == [
            date(2025, 1, 6), date(2025, 1, 8),
            date(2025, 1, 20), date(2025, 1, 22),
            date(2025, 2, 3), date(2025, 2, 5),
        ]

    def test_weekly_days_before_origin_are_skipped(self):
        # Origin is a Wednesday; Monday of that week is already past
        rule = RecurrenceRule('weekly', days_of_week=(1, 3), end_date=date(2025, 1, 13))
        dates = [occ.date for occ in expand(origin('2025-01-08'), rule)]
        assert dates == [date(2025, 1, 8), date(2025, 1, 13)]

    def test_monthly_clamps_to_month_end(self):
        rule = RecurrenceRule(RecurrencePattern.MONTHLY)
        with pytest.warns(RecurrenceBoundsExceeded):
            occurrences = expand(origin('2025-01-31'), rule, hard_cap=3)
        assert [occ.date for occ in occurrences] == [
            date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)
        ]

    def test_monthly_clamps_in_leap_year(self):
        rule = RecurrenceRule('monthly', end_date=date(2024, 3, 31))
        dates = [occ.date for occ in expand(origin('2024-01-31'), rule)]
        assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_sequence_is_restartable(self):
        occurrences = expand(origin('2025-01-06'), RecurrenceRule('daily', end_date=date(2025, 1, 8)))
        assert list(occurrences) == list(occurrences)

    def test_invalid_cap(self):
        with pytest.raises(InvalidInterval):
            expand(origin('2025-01-06'), RecurrenceRule(), hard_cap=0)


class TestRule:
    """Rule validation and helpers"""

    def test_unknown_pattern(self):
        with pytest.raises(InvalidInterval):
            RecurrenceRule('fortnightly')

    @pytest.mark.parametrize('interval', [0, -1, 1.5, True])
    def test_interval_must_be_positive_integer(self, interval):
        with pytest.raises(InvalidInterval):
            RecurrenceRule('daily', interval=interval)

    def test_days_of_week_sorted_and_validated(self):
        assert RecurrenceRule('weekly', days_of_week=(5, 1, 5)).days_of_week == (1, 5)
        with pytest.raises(InvalidInterval):
            RecurrenceRule('weekly', days_of_week=(7,))

    @pytest.mark.parametrize('days', [[1, '3'], ['1'], [1.0], [True], '13', 3])
    def test_days_of_week_must_be_integers(self, days):
        with pytest.raises(InvalidInterval):
            rule_from_dict({'pattern': 'weekly', 'daysOfWeek': days})

    def test_js_weekday(self):
        assert js_weekday(date(2025, 1, 5)) == 0  # Sunday
        assert js_weekday(date(2025, 1, 6)) == 1  # Monday
        assert js_weekday(date(2025, 1, 11)) == 6  # Saturday

    def test_add_months(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 28)

    def test_rule_from_request_json(self):
        rule = rule_from_dict({'pattern': 'weekly', 'interval': 2, 'endDate': '2025-03-01', 'daysOfWeek': [3, 1]})
        assert rule == RecurrenceRule(RecurrencePattern.WEEKLY, 2, date(2025, 3, 1), (1, 3))
        assert rule_from_dict(None) == RecurrenceRule()


class TestEncoding:
    """Recurrence signature"""

    def test_encoding_is_deterministic(self):
        rule = RecurrenceRule('weekly', days_of_week=(3, 1))
        same = RecurrenceRule(RecurrencePattern.WEEKLY, 1, None, (1, 3))
        assert encode_rule(rule) == encode_rule(same)
        assert encode_rule(rule) == '{"daysOfWeek":[1,3],"endDate":null,"interval":1,"pattern":"weekly"}'

    @pytest.mark.parametrize('rule', [
        RecurrenceRule(),
        RecurrenceRule('daily', interval=2),
        RecurrenceRule('monthly', end_date=date(2025, 12, 31)),
        RecurrenceRule('weekly', days_of_week=(0, 6), end_date=date(2025, 6, 1)),
    ])
    def test_decode_reverses_encode(self, rule):
        assert decode_rule(encode_rule(rule)) == rule

    def test_decode_unreadable(self):
        assert decode_rule(None) is None
        assert decode_rule('') is None
        assert decode_rule('weekly;1') is None
        assert decode_rule('{"pattern": "yearly"}') is None


class TestDescribe:

    def test_descriptions(self):
        assert describe_rule(RecurrenceRule()) == 'Does not repeat'
        assert describe_rule(RecurrenceRule('weekly')) == 'Repeats weekly'
        assert describe_rule(RecurrenceRule('daily', interval=3)) == 'Repeats every 3 days'
        assert describe_rule(
            RecurrenceRule('weekly', interval=2, days_of_week=(1, 3), end_date=date(2025, 3, 1))
        ) == 'Repeats every 2 weeks on Mon, Wed until 2025-03-01'
