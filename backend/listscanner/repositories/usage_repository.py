"""
List Scanner Backend — OCR Usage Tracking Repository
=====================================================

Counts the photos recognized by the cloud OCR engine per calendar week so
the user can be warned before the bill grows.

Week handling:
    - A week starts on Monday 00:00 local time.
    - The first read or write in a new week resets the count to 0 and clears
      the "warning shown" flag.
    - The cost warning is due once the count reaches the threshold
      (settings.ocr_cost_warning_threshold, 667 by default, about $1 at
      $1.50 per 1000 requests) and stays due until mark_warning_shown().

Each operation runs in one store transaction, so a reset and the
increment that follows it cannot interleave with another scan.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from listscanner.config import settings
from listscanner.repositories.base import BaseRepository
from listscanner.result import Result
from listscanner.store.data_store import DataStore
from listscanner.store.preference_dao import PreferenceDao, format_flag, parse_flag

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEEKLY_USAGE_COUNT = "weekly_usage_count"
WEEK_START = "week_start"
WARNING_SHOWN_FOR_THRESHOLD = "warning_shown_for_threshold"

_KEYS = (WEEKLY_USAGE_COUNT, WEEK_START, WARNING_SHOWN_FOR_THRESHOLD)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def start_of_week(moment: datetime) -> date:
    """The Monday of the week containing `moment`."""
    return moment.date() - timedelta(days=moment.weekday())


@dataclass(frozen=True)
class UsageSummary:
    weekly_usage: int
    week_start: date
    warning_threshold: int
    show_cost_warning: bool


class UsageTrackingRepository(BaseRepository):
    def __init__(
        self,
        store: DataStore,
        preference_dao: PreferenceDao,
        clock: Callable[[], datetime] = _local_now,
        warning_threshold: Optional[int] = None,
    ):
        self._store = store
        self._dao = preference_dao
        self._clock = clock
        self.warning_threshold = warning_threshold or settings.ocr_cost_warning_threshold

    async def _current_week(self) -> Dict[str, str]:
        """This week's values, resetting them first if they belong to an earlier week."""
        values = await self._dao.get_many(_KEYS)
        week_start = start_of_week(self._clock())
        stored = values.get(WEEK_START)
        if stored is None or date.fromisoformat(stored) < week_start:
            values = {
                WEEKLY_USAGE_COUNT: "0",
                WEEK_START: week_start.isoformat(),
                WARNING_SHOWN_FOR_THRESHOLD: format_flag(False),
            }
            await self._dao.set_many(values)
            if stored is not None:
                logger.info("OCR usage counter reset for the week of %s", week_start.isoformat())
        return values

    def _warning_due(self, values: Dict[str, str]) -> bool:
        return (
            int(values[WEEKLY_USAGE_COUNT]) >= self.warning_threshold
            and not parse_flag(values.get(WARNING_SHOWN_FOR_THRESHOLD))
        )

    async def _run(self, action: str, work: Callable[[], Awaitable[T]]) -> Result[T]:
        async def operation() -> T:
            async with self._store.transaction():
                return await work()

        return await self._guard(action, operation)

    async def reset_if_new_week(self) -> Result[bool]:
        """Success(True) when this call started a new week."""

        async def work() -> bool:
            before = await self._dao.get(WEEK_START)
            after = (await self._current_week())[WEEK_START]
            return before != after

        return await self._run("update OCR usage", work)

    async def increment_usage(self) -> Result[int]:
        """Count one recognized photo; Success(new weekly count)."""

        async def work() -> int:
            values = await self._current_week()
            count = int(values[WEEKLY_USAGE_COUNT]) + 1
            await self._dao.set(WEEKLY_USAGE_COUNT, str(count))
            if count == self.warning_threshold and not parse_flag(values.get(WARNING_SHOWN_FOR_THRESHOLD)):
                logger.warning(
                    "Weekly OCR usage reached %d scans (cost warning threshold)",
                    count,
                )
            return count

        return await self._run("update OCR usage", work)

    async def get_weekly_usage(self) -> Result[int]:
        async def work() -> int:
            return int((await self._current_week())[WEEKLY_USAGE_COUNT])

        return await self._run("load OCR usage", work)

    async def should_show_cost_warning(self) -> Result[bool]:
        async def work() -> bool:
            return self._warning_due(await self._current_week())

        return await self._run("load OCR usage", work)

    async def mark_warning_shown(self) -> Result[bool]:
        async def work() -> bool:
            await self._current_week()
            await self._dao.set(WARNING_SHOWN_FOR_THRESHOLD, format_flag(True))
            return True

        return await self._run("update OCR usage", work)

    async def get_usage_summary(self) -> Result[UsageSummary]:
        async def work() -> UsageSummary:
            values = await self._current_week()
            return UsageSummary(
                weekly_usage=int(values[WEEKLY_USAGE_COUNT]),
                week_start=date.fromisoformat(values[WEEK_START]),
                warning_threshold=self.warning_threshold,
                show_cost_warning=self._warning_due(values),
            )

        return await self._run("load OCR usage", work)
