from datetime import timedelta

import pytest

from scheduleshare.fallback_extractor import FALLBACK_CONFIDENCE, fallback_extract

SAMPLE = """
Summer Jazz Night
Date: Aug 5
Time: 6:30 PM
Location: Sheep Meadow, Central Park
"""


def test_title_location_and_description(fixed_now):
    info = fallback_extract(SAMPLE, fixed_now)
    assert info.title == "Summer Jazz Night"
    assert info.location == "Sheep Meadow, Central Park"
    assert info.description == SAMPLE
    assert info.raw_text == SAMPLE


def test_times_default_to_now_plus_one_hour(fixed_now):
    info = fallback_extract(SAMPLE, fixed_now)
    assert info.start_date_time == fixed_now
    assert info.end_date_time == fixed_now + timedelta(hours=1)


def test_label_lines_are_skipped_case_sensitively(fixed_now):
    info = fallback_extract("Date TBD\nTime later\nrooftop party", fixed_now)
    assert info.title == "rooftop party"
    # lower-case "date" is not a label word
    assert fallback_extract("date night", fixed_now).title == "date night"


def test_title_defaults_to_event(fixed_now):
    info = fallback_extract("Date: 8/10\n\nTime: noon\n", fixed_now)
    assert info.title == "Event"
    assert info.location is None


def test_location_on_following_line(fixed_now):
    info = fallback_extract("Picnic\nLocation\nAbingdon Square", fixed_now)
    assert info.location == "Abingdon Square"


@pytest.mark.parametrize("text", ["x", "   \n  ", "Location", "🎉🎉", "Date Time Location"])
def test_always_low_confidence_with_title(text, fixed_now):
    info = fallback_extract(text, fixed_now)
    assert info.confidence == FALLBACK_CONFIDENCE == 0.3
    assert info.title
