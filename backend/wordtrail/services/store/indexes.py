"""The three sorted indexes over live category codes (time, plays, score)."""

from typing import List, Tuple

from . import keys
from .errors import StoreError


class IndexMaintainer:
    def __init__(self, conn):
        self.conn = conn

    def _writer(self):
        if not getattr(self.conn, 'explicit_transaction', False):
            raise StoreError('index writes must run inside a transaction unit')
        return self.conn

    def add(self, code: str, created_at: int, plays: int = 0, score: int = 0) -> None:
        writer = self._writer()
        writer.zadd(keys.BY_TIME, {code: created_at})
        writer.zadd(keys.BY_PLAYS, {code: plays})
        writer.zadd(keys.BY_SCORE, {code: score})

    def set_plays(self, code: str, plays: int) -> None:
        self._writer().zadd(keys.BY_PLAYS, {code: plays})

    def set_score(self, code: str, score: int) -> None:
        self._writer().zadd(keys.BY_SCORE, {code: score})

    def remove(self, *codes: str) -> None:
        if not codes:
            return
        writer = self._writer()
        for key in keys.INDEXES.values():
            writer.zrem(key, *codes)

    # ---- reads ----

    def page(self, sort: str, start: int, stop: int, reverse: bool = False) -> List[Tuple[str, float]]:
        """Members ranked ``start..stop`` inclusive. Highest first unless ``reverse``."""
        key = keys.INDEXES[sort]
        if reverse:
            return self.conn.zrange(key, start, stop, withscores=True)
        return self.conn.zrevrange(key, start, stop, withscores=True)

    def count(self, sort: str) -> int:
        return self.conn.zcard(keys.INDEXES[sort])

    def membership(self, code: str) -> dict:
        return {
            sort: self.conn.zscore(key, code) is not None
            for sort, key in keys.INDEXES.items()
        }
