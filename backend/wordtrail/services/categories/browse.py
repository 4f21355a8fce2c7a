from typing import List, Optional

from wordtrail.services.store import IndexMaintainer, RecordStore
from wordtrail.services.store import keys

DEFAULT_SORT = 'score'


def list_categories(client, cursor: int = 0, sort: str = 'time', reversed_: bool = False,
                    page_size: int = 500) -> dict:
    """One page of categories from the requested index.

    Highest score first (newest, most played) unless ``reversed_``. The
    returned cursor is the next page number, or 0 once the index is exhausted.
    """
    if sort not in keys.INDEXES:
        sort = DEFAULT_SORT
    cursor = max(0, int(cursor or 0))
    start = cursor * page_size
    stop = start + page_size - 1

    indexes = IndexMaintainer(client)
    members = indexes.page(sort, start, stop, reverse=reversed_)
    if not members:
        return {'categories': [], 'cursor': 0}

    codes = [code for code, _ in members]
    records = RecordStore(client).get_categories(codes)
    categories = [records[code].to_dict(code=code) for code in codes if code in records]
    has_more = start + len(members) < indexes.count(sort)
    return {'categories': categories, 'cursor': cursor + 1 if has_more else 0}


def get_category(client, code: str) -> Optional[dict]:
    record = RecordStore(client).get_category(code)
    return record.to_dict(code=code) if record else None


def get_words(client, code: str) -> Optional[List[str]]:
    words = RecordStore(client).get_words(code)
    return words.split(',') if words else None


def created_categories(client, user_id: str) -> List[dict]:
    records = RecordStore(client)
    ledger = records.get_ledger(user_id)
    if ledger is None or not ledger.created:
        return []
    found = records.get_categories(ledger.created)
    return [found[code].to_dict(code=code) for code in ledger.created if code in found]
