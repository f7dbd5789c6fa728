"""User repository."""

from collections.abc import Callable

from ...models import User, UserPatch
from ...models.patches import apply_user_patch
from ..record_store import Record, Table
from .base import TableRepository


def _by_user_id(user_id: int) -> Callable[[Record], bool]:
    return lambda record: record.get("user_id") == user_id


class UserRepository(TableRepository[User]):
    """Repository for users; users are never hard-deleted."""

    table = Table.USERS
    model = User

    async def get(self, user_id: int) -> User | None:
        record = await self._store.find_one(self.table, _by_user_id(user_id))
        return self._parse(record) if record is not None else None

    async def list_all(self) -> list[User]:
        return self._parse_all(await self._store.find_all(self.table))

    async def insert(self, user: User) -> User:
        await self._store.insert(self.table, self._dump(user))
        self._logger.info("User stored", user_id=user.user_id)
        return user

    async def get_or_create(self, user: User) -> tuple[User, bool]:
        """
        Insert user unless a record with the same user_id exists.

        The check and the insert happen under one lock hold, so concurrent
        first interactions never create duplicate rows.

        Returns:
            (stored user, created flag)
        """

        def _insert_missing(records: list[Record]) -> tuple[list[Record], Record | None]:
            for record in records:
                if isinstance(record, dict) and record.get("user_id") == user.user_id:
                    return records, record
            records.append(self._dump(user))
            return records, None

        existing = await self._store.mutate(self.table, _insert_missing)
        if existing is None:
            self._logger.info("User created", user_id=user.user_id)
            return user, True
        parsed = self._parse(existing)
        return (parsed if parsed is not None else user), False

    async def update(self, user_id: int, patch: UserPatch) -> User | None:
        """Apply a typed patch; None when the user does not exist."""

        def _patch(record: Record) -> Record:
            current = self._parse(record)
            if current is None:
                return record
            return self._dump(apply_user_patch(current, patch))

        updated = await self._store.update_one(self.table, _by_user_id(user_id), _patch)
        return self._parse(updated) if updated is not None else None

    async def count(self, where: Callable[[User], bool] | None = None) -> int:
        users = await self.list_all()
        if where is None:
            return len(users)
        return sum(1 for user in users if where(user))
