"""Flat string encodings of the records kept in the store.

Category records and user ledgers are stored as colon-delimited strings.
Everything outside this module works with the typed records; the string
layout (field order, ``:c:``/``:h:`` sentinels) stays fixed for
compatibility with data already written.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import CategoryFormatError, LedgerFormatError

SEPARATOR = ':'
CREATED_MARKER = 'c'
HIGH_SCORE_MARKER = 'h'
ANONYMIZED = '[deleted]'

TITLE_PATTERN = re.compile(r'[A-Za-z0-9\-_ ]{1,16}')
WORD_CHARS_PATTERN = re.compile(r'[A-Za-z\s]+')
WORDS_PATTERN = re.compile(r'[A-Z]+(?: [A-Z]+)*(?:,[A-Z]+(?: [A-Z]+)*)*')
MAX_WORD_LENGTH = 12
MIN_WORDS = 10
MAX_WORDS = 100

_CATEGORY_FIELD_COUNT = 8


@dataclass
class CategoryRecord:
    creator_username: str
    title: str
    play_count: int = 0
    high_score: int = 0
    high_score_username: str = ''
    high_score_user_id: str = ''
    post_id: str = ''
    created_at: Optional[int] = None

    def clear_high_score(self) -> None:
        self.high_score = 0
        self.high_score_username = ''
        self.high_score_user_id = ''

    def to_dict(self, code=None):
        data = {
            'creator': self.creator_username,
            'title': self.title,
            'plays': self.play_count,
            'high_score': self.high_score,
            'high_score_username': self.high_score_username,
            'post_id': self.post_id,
            'created_at': self.created_at,
        }
        if code is not None:
            data['code'] = code
        return data


def encode_category(record: CategoryRecord) -> str:
    for value in (record.creator_username, record.title, record.high_score_username,
                  record.high_score_user_id, record.post_id):
        if SEPARATOR in value:
            raise CategoryFormatError(f'field contains separator: {value!r}')
    if record.play_count < 0 or record.high_score < 0:
        raise CategoryFormatError('counters must be non-negative')
    parts = [
        record.creator_username,
        record.title,
        str(record.play_count),
        str(record.high_score),
        record.high_score_username,
        record.high_score_user_id,
        record.post_id,
    ]
    # Records written before timestamps existed have seven fields
    if record.created_at is not None:
        parts.append(str(record.created_at))
    return SEPARATOR.join(parts)


def _counter(value: str, name: str) -> int:
    if value == '':
        return 0
    try:
        number = int(value)
    except ValueError:
        raise CategoryFormatError(f'{name} is not a number: {value!r}') from None
    if number < 0:
        raise CategoryFormatError(f'{name} is negative: {number}')
    return number


def decode_category(value: str) -> CategoryRecord:
    parts = value.split(SEPARATOR)
    if len(parts) > _CATEGORY_FIELD_COUNT:
        raise CategoryFormatError(f'expected at most {_CATEGORY_FIELD_COUNT} fields, got {len(parts)}')
    parts += [''] * (_CATEGORY_FIELD_COUNT - len(parts))
    creator, title, plays, score, hs_username, hs_user_id, post_id, timestamp = parts
    return CategoryRecord(
        creator_username=creator,
        title=title,
        play_count=_counter(plays, 'plays'),
        high_score=_counter(score, 'high score'),
        high_score_username=hs_username,
        high_score_user_id=hs_user_id,
        post_id=post_id,
        created_at=_counter(timestamp, 'timestamp') if timestamp else None,
    )


def _unique(codes):
    seen = []
    for code in codes:
        if code and code not in seen:
            seen.append(code)
    return seen


@dataclass
class UserLedger:
    """Per-user list of created categories and categories where the user holds the high score."""

    username: str
    created: List[str] = field(default_factory=list)
    high_scores: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.created = _unique(self.created)
        self.high_scores = _unique(self.high_scores)

    @property
    def has_categories(self) -> bool:
        return bool(self.created or self.high_scores)

    def add_created(self, code: str) -> None:
        if code not in self.created:
            self.created.append(code)

    def add_high_score(self, code: str) -> None:
        if code not in self.high_scores:
            self.high_scores.append(code)

    def remove_high_score(self, code: str) -> bool:
        if code in self.high_scores:
            self.high_scores.remove(code)
            return True
        return False

    def discard(self, codes) -> bool:
        """Drop the given codes from both lists. Returns True if anything changed."""
        codes = set(codes)
        created = [c for c in self.created if c not in codes]
        high_scores = [c for c in self.high_scores if c not in codes]
        changed = len(created) != len(self.created) or len(high_scores) != len(self.high_scores)
        self.created, self.high_scores = created, high_scores
        return changed


def encode_ledger(ledger: UserLedger) -> str:
    if SEPARATOR in ledger.username:
        raise LedgerFormatError(f'username contains separator: {ledger.username!r}')
    parts = [ledger.username]
    if ledger.created:
        parts.append(CREATED_MARKER)
        parts.extend(ledger.created)
    if ledger.high_scores:
        parts.append(HIGH_SCORE_MARKER)
        parts.extend(ledger.high_scores)
    return SEPARATOR.join(parts)


def decode_ledger(value: str) -> UserLedger:
    tokens = value.split(SEPARATOR)
    username = tokens[0]
    sections = {}
    current = None
    for token in tokens[1:]:
        if token in (CREATED_MARKER, HIGH_SCORE_MARKER):
            if token in sections:
                raise LedgerFormatError(f'repeated section marker {token!r} in {value!r}')
            if token == CREATED_MARKER and HIGH_SCORE_MARKER in sections:
                raise LedgerFormatError(f'created section follows high score section in {value!r}')
            current = sections[token] = []
        elif not token:
            continue
        elif current is None:
            raise LedgerFormatError(f'code outside of any section in {value!r}')
        else:
            current.append(token)
    return UserLedger(
        username=username,
        created=sections.get(CREATED_MARKER, []),
        high_scores=sections.get(HIGH_SCORE_MARKER, []),
    )


@dataclass
class PostLink:
    category_code: str
    creator_user_id: str


def encode_post_link(link: PostLink) -> str:
    return f'{link.category_code}{SEPARATOR}{link.creator_user_id}'


def decode_post_link(value: str) -> PostLink:
    code, _, user_id = value.partition(SEPARATOR)
    return PostLink(category_code=code, creator_user_id=user_id)


def validate_title(title: str) -> bool:
    return bool(title) and TITLE_PATTERN.fullmatch(title) is not None


def normalize_words(raw: str) -> Optional[str]:
    """Normalize a submitted word list to the stored CSV form.

    Entries that are empty, longer than twelve characters or contain
    anything but letters and spaces are dropped. Returns None when the
    remaining list is not 10-100 well formed words.
    """
    if not raw:
        return None
    entries = [e.strip() for e in raw.replace('\n', '').replace('\r', '').split(',')]
    entries = [
        e for e in entries
        if e and len(e) <= MAX_WORD_LENGTH and WORD_CHARS_PATTERN.fullmatch(e)
    ]
    if not MIN_WORDS <= len(entries) <= MAX_WORDS:
        return None
    words = ','.join(entries).upper()
    if WORDS_PATTERN.fullmatch(words) is None:
        return None
    return words


@dataclass
class Submission:
    title_ok: bool
    words_ok: bool
    words: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.title_ok and self.words_ok


def check_submission(title: str, words: str) -> Submission:
    normalized = normalize_words(words)
    return Submission(
        title_ok=validate_title(title),
        words_ok=normalized is not None,
        words=normalized,
    )
