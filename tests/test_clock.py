from datetime import date, datetime

import pytest

from careslot.core.clock import at_minute, format_hhmm, parse_hhmm


@pytest.mark.parametrize(('text', 'minute'), [('09:00', 540), ('9:30', 570), ('00:00', 0), ('24:00', 1440), ('17:45:00', 1065)])
def test_parse_hhmm_accepts_wall_clock_times(text: str, minute: int) -> None:
    assert parse_hhmm(text) == minute


@pytest.mark.parametrize('text', ['9', '25:00', '24:30', '10:60', 'noon'])
def test_parse_hhmm_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_hhmm(text)


def test_format_and_at_minute() -> None:
    assert format_hhmm(570) == '09:30'
    assert at_minute(date(2026, 3, 2), 570) == datetime(2026, 3, 2, 9, 30)
