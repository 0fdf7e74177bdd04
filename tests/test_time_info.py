import datetime

from ats_proxy.utils.time_info import iso_timestamp


def test_iso_timestamp_matches_browser_format():
    now = datetime.datetime(2026, 2, 5, 14, 3, 9, 512345, tzinfo=datetime.timezone.utc)
    assert iso_timestamp(now) == "2026-02-05T14:03:09.512Z"


def test_iso_timestamp_converts_to_utc():
    plus_two = datetime.timezone(datetime.timedelta(hours=2))
    now = datetime.datetime(2026, 2, 5, 16, 0, 0, tzinfo=plus_two)
    assert iso_timestamp(now) == "2026-02-05T14:00:00.000Z"
