"""Typed access to category records, words, user ledgers and post links.

Reads work on a plain client or on a pipeline in WATCH mode (where they
execute immediately). Writes are only accepted on a pipeline that has
entered MULTI, i.e. inside a unit handed out by the transaction coordinator.
"""

from typing import Dict, Iterable, Optional, Tuple

from . import keys
from .codec import (
    CategoryRecord, PostLink, UserLedger,
    decode_category, decode_ledger, decode_post_link,
    encode_category, encode_ledger, encode_post_link,
)
from .codes import INITIAL_CODE
from .errors import StoreError


class RecordStore:
    def __init__(self, conn):
        self.conn = conn

    # ---- reads ----

    def has_sequence(self) -> bool:
        return bool(self.conn.exists(keys.SEQUENCE))

    def get_sequence(self) -> str:
        return self.conn.get(keys.SEQUENCE) or INITIAL_CODE

    def get_main_post_id(self) -> str:
        return self.conn.get(keys.MAIN_POST) or ''

    def get_category(self, code: str) -> Optional[CategoryRecord]:
        value = self.conn.hget(keys.CATEGORIES, code)
        return decode_category(value) if value else None

    def get_categories(self, codes: Iterable[str]) -> Dict[str, CategoryRecord]:
        codes = list(codes)
        if not codes:
            return {}
        values = self.conn.hmget(keys.CATEGORIES, codes)
        return {code: decode_category(v) for code, v in zip(codes, values) if v}

    def get_words(self, code: str) -> Optional[str]:
        return self.conn.hget(keys.WORDS, code)

    def get_ledger(self, user_id: str) -> Optional[UserLedger]:
        value = self.conn.hget(keys.LEDGERS, user_id)
        return decode_ledger(value) if value is not None else None

    def get_ledgers(self, user_ids: Iterable[str]) -> Dict[str, UserLedger]:
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        values = self.conn.hmget(keys.LEDGERS, user_ids)
        return {uid: decode_ledger(v) for uid, v in zip(user_ids, values) if v is not None}

    def get_post_link(self, post_id: str) -> Optional[PostLink]:
        value = self.conn.hget(keys.POST_LINKS, post_id)
        return decode_post_link(value) if value else None

    def scan_ledger_page(self, cursor: int, count: int) -> Tuple[int, Dict[str, str]]:
        """One HSCAN page of raw ledger strings. A returned cursor of 0 ends the scan."""
        next_cursor, page = self.conn.hscan(keys.LEDGERS, cursor, count=count)
        return int(next_cursor), page

    # ---- writes ----

    def _writer(self):
        if not getattr(self.conn, 'explicit_transaction', False):
            raise StoreError('store writes must run inside a transaction unit')
        return self.conn

    def advance_sequence(self, code: str) -> None:
        self._writer().set(keys.SEQUENCE, code)

    def set_main_post_id(self, post_id: str) -> None:
        self._writer().set(keys.MAIN_POST, post_id)

    def put_category(self, code: str, record: CategoryRecord) -> None:
        self._writer().hset(keys.CATEGORIES, code, encode_category(record))

    def put_categories(self, records: Dict[str, CategoryRecord]) -> None:
        if records:
            self._writer().hset(
                keys.CATEGORIES,
                mapping={code: encode_category(r) for code, r in records.items()},
            )

    def put_words(self, code: str, words: str) -> None:
        self._writer().hset(keys.WORDS, code, words)

    def put_ledger(self, user_id: str, ledger: UserLedger) -> None:
        self._writer().hset(keys.LEDGERS, user_id, encode_ledger(ledger))

    def put_ledgers(self, ledgers: Dict[str, UserLedger]) -> None:
        if ledgers:
            self._writer().hset(
                keys.LEDGERS,
                mapping={uid: encode_ledger(l) for uid, l in ledgers.items()},
            )

    def put_post_link(self, post_id: str, link: PostLink) -> None:
        self._writer().hset(keys.POST_LINKS, post_id, encode_post_link(link))

    def delete_category(self, code: str, post_id: str = '') -> None:
        """Remove the record, its words and its post link."""
        writer = self._writer()
        writer.hdel(keys.CATEGORIES, code)
        writer.hdel(keys.WORDS, code)
        if post_id:
            writer.hdel(keys.POST_LINKS, post_id)

    def delete_ledger_entry(self, *user_ids: str) -> None:
        if user_ids:
            self._writer().hdel(keys.LEDGERS, *user_ids)
