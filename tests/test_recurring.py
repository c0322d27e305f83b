"""Tests for recurrence phrase recognition."""

import pytest

from todo_nlp.exceptions import RecurrenceError
from todo_nlp.recurring import (
    Frequency, RecurrenceParser, RecurrenceRule, Weekday, lookup_weekday
)


class TestRecurrenceParser:
    """Test the ordered recurrence pattern table."""

    def test_monthly_day_of_month(self):
        """Test 'a cada N do mês'."""
        rule, remaining = RecurrenceParser.extract("Estudar React a cada 5 do mês")
        assert rule.to_rrule() == "RRULE:FREQ=MONTHLY;BYMONTHDAY=5"
        assert remaining.strip() == "Estudar React"

    def test_todo_dia_n_beats_daily(self):
        """'todo dia 10 do mês' is monthly, not daily."""
        rule = RecurrenceParser.parse("Pagar fatura todo dia 10 do mês")
        assert rule == RecurrenceRule(Frequency.MONTHLY, by_month_day=10)

    def test_english_day_of_month(self):
        rule = RecurrenceParser.parse("Pay rent every 1st of the month")
        assert rule == RecurrenceRule(Frequency.MONTHLY, by_month_day=1)

    def test_out_of_range_day_of_month(self):
        """A day past 31 is not a monthly anchor."""
        assert RecurrenceParser.parse("a cada 40 do mês") is None

    def test_last_weekday_of_month(self):
        """Test 'toda última sexta do mês'."""
        rule, remaining = RecurrenceParser.extract("Reunião toda última sexta do mês")
        assert rule.to_rrule() == "RRULE:FREQ=MONTHLY;BYDAY=FR;BYSETPOS=-1"
        assert remaining.strip() == "Reunião"

    def test_last_weekday_english(self):
        rule = RecurrenceParser.parse("Retro every last friday of the month")
        assert rule == RecurrenceRule(Frequency.MONTHLY, by_weekday=Weekday.FR, by_set_pos=-1)

    @pytest.mark.parametrize("phrase,weekday", [
        ("toda segunda", Weekday.MO),
        ("toda segunda-feira", Weekday.MO),
        ("todas as sextas", Weekday.FR),
        ("todos os domingos", Weekday.SU),
        ("TODA TERÇA", Weekday.TU),
        ("every monday", Weekday.MO),
        ("every Saturdays", Weekday.SA),
    ])
    def test_weekly_on_weekday(self, phrase, weekday):
        """Test weekly phrases anchored on a weekday."""
        rule, remaining = RecurrenceParser.extract(f"Academia {phrase}")
        assert rule == RecurrenceRule(Frequency.WEEKLY, by_weekday=weekday)
        assert remaining.strip() == "Academia"

    @pytest.mark.parametrize("phrase,frequency", [
        ("todo dia", Frequency.DAILY),
        ("diariamente", Frequency.DAILY),
        ("every day", Frequency.DAILY),
        ("daily", Frequency.DAILY),
        ("toda semana", Frequency.WEEKLY),
        ("semanalmente", Frequency.WEEKLY),
        ("weekly", Frequency.WEEKLY),
        ("todo mês", Frequency.MONTHLY),
        ("mensalmente", Frequency.MONTHLY),
        ("every month", Frequency.MONTHLY),
    ])
    def test_plain_frequencies(self, phrase, frequency):
        """Test phrases without qualifiers."""
        rule, remaining = RecurrenceParser.extract(f"Regar plantas {phrase}")
        assert rule == RecurrenceRule(frequency)
        assert remaining.strip() == "Regar plantas"

    def test_first_pattern_wins(self):
        """Only one rule is produced; weekly comes before monthly."""
        rule, remaining = RecurrenceParser.extract("Backup toda semana e todo mês")
        assert rule == RecurrenceRule(Frequency.WEEKLY)
        assert "todo mês" in remaining

    def test_no_recurrence(self):
        rule, remaining = RecurrenceParser.extract("Comprar leite")
        assert rule is None
        assert remaining == "Comprar leite"

    def test_words_inside_other_words_ignored(self):
        """'weekly' inside 'biweekly' is not a recurrence."""
        assert RecurrenceParser.parse("Read biweekly report") is None


class TestRecurrenceRule:
    """Test RRULE rendering and reading."""

    def test_render_plain(self):
        assert RecurrenceRule(Frequency.DAILY).to_rrule() == "RRULE:FREQ=DAILY"
        assert str(RecurrenceRule(Frequency.WEEKLY, by_weekday=Weekday.MO)) == "RRULE:FREQ=WEEKLY;BYDAY=MO"

    def test_read_back(self):
        rule = RecurrenceRule.from_rrule("RRULE:FREQ=MONTHLY;BYDAY=FR;BYSETPOS=-1")
        assert rule == RecurrenceRule(Frequency.MONTHLY, by_weekday=Weekday.FR, by_set_pos=-1)

    def test_read_without_prefix(self):
        rule = RecurrenceRule.from_rrule("freq=monthly;bymonthday=5")
        assert rule == RecurrenceRule(Frequency.MONTHLY, by_month_day=5)

    @pytest.mark.parametrize("bad", [
        "RRULE:BYDAY=MO",
        "RRULE:FREQ=HOURLY",
        "RRULE:FREQ=WEEKLY;BYDAY=XX",
        "RRULE:FREQ=MONTHLY;BYMONTHDAY=five",
        "RRULE:FREQ=DAILY;COUNT=3",
        "RRULE:FREQ",
    ])
    def test_read_invalid(self, bad):
        with pytest.raises(RecurrenceError):
            RecurrenceRule.from_rrule(bad)


class TestWeekdayLookup:
    """Test the weekday name table."""

    def test_case_insensitive(self):
        assert lookup_weekday("Sábado") == Weekday.SA
        assert lookup_weekday("FRIDAY") == Weekday.FR

    def test_unaccented_names(self):
        assert lookup_weekday("terca") == Weekday.TU
        assert lookup_weekday("sabado") == Weekday.SA

    def test_unknown_name(self):
        assert lookup_weekday("feriado") is None

    def test_python_index(self):
        assert Weekday.MO.index == 0
        assert Weekday.FR.index == 4
        assert Weekday.SU.index == 6
