"""
List Scanner Backend — Preference Data Access
==============================================

Reads and upserts rows of the `preferences` key/value table. Values are
stored as strings; flags are "true" / "false" and a missing row reads as
False.
"""

from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from listscanner.models.preference import Preference
from listscanner.store.data_store import DataStore
from listscanner.store.live_query import LiveQuery

PREFERENCES = Preference.__tablename__


def parse_flag(value: Optional[str]) -> bool:
    return value == "true"


def format_flag(flag: bool) -> str:
    return "true" if flag else "false"


def _select_value(key: str):
    async def query(session: AsyncSession) -> Optional[str]:
        preference = await session.get(Preference, key)
        return preference.value if preference is not None else None

    return query


def _select_flag(key: str):
    select_value = _select_value(key)

    async def query(session: AsyncSession) -> bool:
        return parse_flag(await select_value(session))

    return query


class PreferenceDao:
    def __init__(self, store: DataStore):
        self._store = store

    async def get(self, key: str) -> Optional[str]:
        return await self._store.read(_select_value(key))

    async def get_many(self, keys: Iterable[str]) -> Dict[str, str]:
        """Values of the given keys; keys without a row are left out."""
        keys = list(keys)

        async def query(session: AsyncSession) -> Dict[str, str]:
            result = await session.execute(select(Preference).where(Preference.key.in_(keys)))
            return {p.key: p.value for p in result.scalars().all()}

        return await self._store.read(query)

    async def get_flag(self, key: str) -> bool:
        return await self._store.read(_select_flag(key))

    async def set(self, key: str, value: str) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Dict[str, str]) -> None:
        """Insert or overwrite several keys in one transaction."""
        async with self._store.transaction() as session:
            for key, value in values.items():
                await session.merge(Preference(key=key, value=value))
            await session.flush()
            self._store.mark_changed(PREFERENCES)

    def observe_flag(self, key: str) -> LiveQuery[bool]:
        return self._store.observe(_select_flag(key), [PREFERENCES])
