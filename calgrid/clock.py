"""Current-time provider for calgrid."""

from __future__ import annotations

import datetime
import logging
import os

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "CALGRID_TEST_TIME"


def now_utc() -> datetime.datetime:
    """Return current UTC time with tzinfo.

    Can be overridden for testing via the CALGRID_TEST_TIME environment variable.
    Format: ISO 8601 datetime string (e.g., "2026-10-21T08:20:00-07:00").
    Naive values are taken as UTC.
    """
    test_time = os.environ.get(TEST_TIME_ENV)
    if test_time:
        try:
            from dateutil import parser as date_parser

            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                return dt.astimezone(datetime.timezone.utc)
            return dt.replace(tzinfo=datetime.timezone.utc)
        except (ValueError, OverflowError) as e:
            logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

    return datetime.datetime.now(datetime.timezone.utc)
