from datetime import datetime, timezone

import pytest

from tvnotifier.utils.timezone import Clock


# Sunday; tomorrow is Mon. Oct. 19
NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> Clock:
    return Clock.fixed(NOW)
