"""Store identity resolution."""

import logging
from datetime import datetime, UTC
from typing import Callable, Iterable

from cnabingest.database.base import UnitOfWork
from cnabingest.domain.entities import StoreIdentity
from cnabingest.domain.errors import StoreConflictError

logger = logging.getLogger(__name__)


class StoreResolver:
    """Resolves store identities to store ids, creating unseen stores.

    Concurrent creation of the same identity by another worker is settled by
    the database unique constraint: the losing insert is rolled back to its
    savepoint and the winner's row is reused.
    """

    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(UTC)):
        self.clock = clock

    def resolve(self, uow: UnitOfWork, identities: Iterable[StoreIdentity]) -> dict[StoreIdentity, str]:
        """Resolve every distinct identity inside the given unit of work.

        Args:
            uow: Open unit of work
            identities: Store identities found in one file

        Returns:
            Mapping of identity to store id
        """
        resolved: dict[StoreIdentity, str] = {}
        now = self.clock()
        for identity in identities:
            if identity in resolved:
                continue

            store = uow.find_store(identity)
            if store is not None:
                uow.touch_store(store.id, now)
                resolved[identity] = store.id
                continue

            try:
                store = uow.add_store(identity)
                logger.debug("Created store '%s' (%s)", identity.name, identity.owner_name)
            except StoreConflictError:
                logger.info(
                    "Store '%s' (%s) was created concurrently; reusing it",
                    identity.name,
                    identity.owner_name,
                )
                store = uow.find_store(identity)
                if store is None:
                    raise
            resolved[identity] = store.id

        return resolved
