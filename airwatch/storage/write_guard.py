"""Write deduplication: skip persisting an unchanged reading taken too soon."""

import logging
from datetime import datetime, timedelta

from airwatch.models.air_quality import MetricSnapshot
from airwatch.models.common import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_WINDOW = timedelta(minutes=5)


class PersistenceGuard:
    def __init__(self, dedup_window: timedelta = DEFAULT_DEDUP_WINDOW, clock: Clock = utc_now):
        self.dedup_window = dedup_window
        self.clock = clock

    def should_write(
        self,
        target: str,
        candidate_index: int,
        candidate_time: datetime | None,
        last_persisted: MetricSnapshot | None,
    ) -> bool:
        """Return False only when the index is unchanged AND the last write is recent.

        ``candidate_time`` defaults to the injected clock.
        """
        if last_persisted is None:
            return True
        if candidate_time is None:
            candidate_time = self.clock()

        elapsed = candidate_time - last_persisted.timestamp
        if elapsed < self.dedup_window and candidate_index == last_persisted.index:
            logger.debug(
                "Skipping write for %s: AQI %d unchanged %.0fs after last write",
                target, candidate_index, elapsed.total_seconds(),
            )
            return False
        return True
