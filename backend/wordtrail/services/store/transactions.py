"""Optimistic WATCH/MULTI/EXEC units with bounded retry.

Every mutating operation in the game goes through ``TransactionCoordinator.run``.
All units WATCH the same key (the category sequence counter), so any two
concurrent writers serialize: the one that commits second sees a conflict
and re-runs from its reads.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from redis.exceptions import WatchError

from . import keys
from .indexes import IndexMaintainer
from .records import RecordStore

logger = logging.getLogger(__name__)


class Unit:
    """Handed to an operation: read through ``records``/``indexes``, call
    ``begin()``, then enqueue writes through the same objects."""

    def __init__(self, pipe):
        self.pipe = pipe
        self.records = RecordStore(pipe)
        self.indexes = IndexMaintainer(pipe)

    @property
    def writing(self) -> bool:
        return bool(self.pipe.explicit_transaction)

    def begin(self) -> None:
        if not self.writing:
            self.pipe.multi()


@dataclass
class Outcome:
    value: Any = None
    committed: bool = False
    exhausted: bool = False
    attempts: int = 0


class TransactionCoordinator:
    def __init__(self, client, watch_key: str = keys.SEQUENCE):
        self.client = client
        self.watch_key = watch_key

    def run(self, operation: Callable[[Unit], Any], retries: int = 1,
            name: str = 'transaction', default: Any = None) -> Outcome:
        """Run ``operation`` in a watched unit, retrying on conflicts.

        An operation that returns without calling ``unit.begin()`` is a
        no-op: nothing is executed and its value is returned uncommitted.
        Running out of attempts returns ``default`` with ``exhausted`` set.
        """
        retries = max(1, int(retries))
        for attempt in range(1, retries + 1):
            with self.client.pipeline() as pipe:
                try:
                    pipe.watch(self.watch_key)
                    unit = Unit(pipe)
                    value = operation(unit)
                    if not unit.writing:
                        return Outcome(value=value, attempts=attempt)
                    pipe.execute()
                    logger.debug(f"[txn-commit] name={name} attempt={attempt}")
                    return Outcome(value=value, committed=True, attempts=attempt)
                except WatchError:
                    logger.info(f"[txn-conflict] name={name} attempt={attempt}/{retries}")
        logger.warning(f"[txn-exhausted] name={name} attempts={retries}")
        return Outcome(value=default, exhausted=True, attempts=retries)
