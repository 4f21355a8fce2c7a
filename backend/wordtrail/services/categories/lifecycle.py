"""Category create / play / delete and the user-triggered bulk delete.

Each operation reads what it needs inside a coordinator unit, decides its
writes from those reads, and enqueues them in one MULTI block. Reads done
before the unit (allowance checks) are only hints and are repeated inside.
Host side effects other than post creation are advisory.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import current_app

from wordtrail.services.host import advisory
from wordtrail.services.store import (
    CategoryRecord, PostLink, RecordStore, TransactionCoordinator, UserLedger,
    INITIAL_CODE, next_code,
)
from wordtrail.services.store.codec import check_submission

# Creation outcomes
FORMED_CORRECTLY = 'formedCorrectly'
EXCEEDED_LIMIT = 'exceededLimit'
VALIDATION_FAILED = 'validationFailed'
NOT_ALLOWED = 'notAllowed'
UNAVAILABLE = 'unavailable'

# Creation allowance, as shown when the form is opened
ALLOWED = 'true'
EXCEEDED = 'exceeded'
DENIED = 'false'

# Play feedback
NEW_HIGH_SCORE = 'NEWHS'
NOT_HIGH_SCORE = 'NOTHS'
NOT_FOUND = 'NOTFOUND'


@dataclass
class CreateResult:
    status: str
    title: str = ''
    code: Optional[str] = None
    title_ok: bool = True
    words_ok: bool = True

    def to_dict(self):
        if self.status == VALIDATION_FAILED:
            return {'status': self.status, 'titleCorrect': self.title_ok, 'wordsCorrect': self.words_ok}
        return {'status': self.status, 'categoryTitle': self.title, 'categoryCode': self.code}


@dataclass
class PlayResult:
    feedback: str
    holder: str = ''
    score: int = 0
    plays: int = 0
    post_id: str = ''
    committed: bool = False

    def to_dict(self):
        info = f'{self.holder}:{self.score}' if self.feedback == NOT_HIGH_SCORE and self.committed else ''
        return {
            'information': self.feedback,
            'categoryInfo': info,
            'holder': self.holder,
            'score': self.score,
            'plays': self.plays,
        }


@dataclass
class DeleteResult:
    success: bool
    code: str
    message: str = ''
    post_id: str = ''

    def to_dict(self):
        data = {'success': self.success, 'categoryCode': self.code}
        if self.message:
            data['message'] = self.message
        return data


@dataclass
class BulkDeleteResult:
    deleted: bool
    removed: List[str] = field(default_factory=list)
    reset: List[str] = field(default_factory=list)
    post_ids: List[str] = field(default_factory=list)

    def to_dict(self):
        return {'deleted': self.deleted}


@dataclass
class PostDeletedResult:
    kind: str  # main, category, unknown
    code: Optional[str] = None
    committed: bool = False


class _LedgerEdits:
    """Ledgers loaded once per unit and the subset that changed."""

    def __init__(self, records: RecordStore):
        self.records = records
        self.loaded: Dict[str, Optional[UserLedger]] = {}
        self.changed = set()

    def get(self, user_id) -> Optional[UserLedger]:
        if user_id not in self.loaded:
            self.loaded[user_id] = self.records.get_ledger(user_id)
        return self.loaded[user_id]

    def preload(self, user_ids) -> None:
        wanted = [uid for uid in dict.fromkeys(user_ids) if uid and uid not in self.loaded]
        found = self.records.get_ledgers(wanted)
        for uid in wanted:
            self.loaded[uid] = found.get(uid)

    def discard(self, user_id, codes) -> None:
        if not user_id:
            return
        ledger = self.get(user_id)
        if ledger is not None and ledger.discard(codes):
            self.changed.add(user_id)

    def changed_ledgers(self, skip=()) -> Dict[str, UserLedger]:
        return {uid: self.loaded[uid] for uid in self.changed if uid not in skip}


def _clamp_score(value) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


class CategoryLifecycle:
    def __init__(self, client, host, config):
        self.client = client
        self.host = host
        self.config = config
        self.records = RecordStore(client)
        self.coordinator = TransactionCoordinator(client)

    def _retries(self, name, default):
        return int(self.config.get(name, default))

    # ---- ledgers and allowance ----

    def ensure_ledger(self, user_id: str, username: str) -> UserLedger:
        """Return the user's ledger, creating a bare one on first visit."""
        existing = self.records.get_ledger(user_id)
        if existing is not None:
            return existing

        def operation(unit):
            ledger = unit.records.get_ledger(user_id)
            if ledger is not None:
                return ledger
            ledger = UserLedger(username=username)
            unit.begin()
            unit.records.put_ledger(user_id, ledger)
            return ledger

        outcome = self.coordinator.run(
            operation, self._retries('CREATE_RETRY_LIMIT', 5), name='ensure_ledger',
            default=UserLedger(username=username),
        )
        if outcome.committed:
            current_app.logger.info(f"[ledger-created] user={user_id}")
        return outcome.value

    def _creation_limit(self, is_moderator: bool) -> Optional[int]:
        moderator_only = bool(self.config.get('MODERATOR_ONLY_CATEGORIES', False))
        if moderator_only and not is_moderator:
            return None
        if moderator_only:
            return int(self.config.get('MAX_CATEGORIES_PER_MODERATOR', 999))
        return int(self.config.get('MAX_CATEGORIES_PER_USER', 10))

    def creation_allowance(self, user_id: str, is_moderator: bool = False) -> str:
        limit = self._creation_limit(is_moderator)
        if limit is None:
            return DENIED
        ledger = self.records.get_ledger(user_id)
        created = len(ledger.created) if ledger else 0
        return ALLOWED if created < limit else EXCEEDED

    # ---- create ----

    def create(self, user_id: str, username: str, title: str, words: str,
               is_moderator: bool = False) -> CreateResult:
        submission = check_submission(title or '', words or '')
        if not submission.ok:
            return CreateResult(VALIDATION_FAILED, title=title or '',
                                title_ok=submission.title_ok, words_ok=submission.words_ok)

        allowance = self.creation_allowance(user_id, is_moderator)
        if allowance == DENIED:
            return CreateResult(NOT_ALLOWED, title=title)
        if allowance == EXCEEDED:
            return CreateResult(EXCEEDED_LIMIT, title=title)
        limit = self._creation_limit(is_moderator)

        try:
            post_id = self.host.create_post(f'Play {title} category')['id']
        except Exception as exc:
            current_app.logger.error(f"[create-post-failed] user={user_id} title={title!r} error={exc}")
            return CreateResult(UNAVAILABLE, title=title)

        def operation(unit):
            ledger = unit.records.get_ledger(user_id) or UserLedger(username=username)
            if len(ledger.created) >= limit:
                return EXCEEDED_LIMIT
            code = next_code(unit.records.get_sequence())
            created_at = int(time.time())
            record = CategoryRecord(
                creator_username=ledger.username,
                title=title,
                post_id=post_id,
                created_at=created_at,
            )
            ledger.add_created(code)

            unit.begin()
            unit.records.advance_sequence(code)
            unit.records.put_category(code, record)
            unit.records.put_words(code, submission.words)
            unit.records.put_ledger(user_id, ledger)
            unit.records.put_post_link(post_id, PostLink(code, user_id))
            unit.indexes.add(code, created_at)
            return code

        outcome = self.coordinator.run(operation, self._retries('CREATE_RETRY_LIMIT', 5), name='create')
        if not outcome.committed:
            advisory('remove_post', self.host.remove_post, post_id)
            if outcome.value == EXCEEDED_LIMIT:
                return CreateResult(EXCEEDED_LIMIT, title=title)
            return CreateResult(UNAVAILABLE, title=title)

        code = outcome.value
        advisory('approve_post', self.host.approve_post, post_id)
        current_app.logger.info(
            f"[category-created] code={code} user={user_id} post={post_id} attempts={outcome.attempts}"
        )
        return CreateResult(FORMED_CORRECTLY, title=title, code=code)

    # ---- play ----

    def record_play(self, code: str, new_score, user_id: str, username: str,
                    guessed_all: bool = False) -> PlayResult:
        score = _clamp_score(new_score)

        def operation(unit):
            record = unit.records.get_category(code)
            if record is None:
                return PlayResult(NOT_FOUND)
            record.play_count += 1
            ledgers = {}

            if score > record.high_score:
                previous_holder = record.high_score_user_id
                if previous_holder and previous_holder != user_id:
                    previous = unit.records.get_ledger(previous_holder)
                    if previous is not None and previous.remove_high_score(code):
                        ledgers[previous_holder] = previous
                ledger = unit.records.get_ledger(user_id) or UserLedger(username=username)
                ledger.add_high_score(code)
                ledgers[user_id] = ledger
                record.high_score = score
                record.high_score_username = username
                record.high_score_user_id = user_id
                result = PlayResult(NEW_HIGH_SCORE, holder=username, score=score)
            else:
                result = PlayResult(NOT_HIGH_SCORE, holder=record.high_score_username,
                                    score=record.high_score)
            result.plays = record.play_count
            result.post_id = record.post_id

            unit.begin()
            unit.records.put_category(code, record)
            unit.indexes.set_plays(code, record.play_count)
            if result.feedback == NEW_HIGH_SCORE:
                unit.indexes.set_score(code, score)
                unit.records.put_ledgers(ledgers)
            return result

        outcome = self.coordinator.run(
            operation, self._retries('PLAY_RETRY_LIMIT', 3), name='record_play',
            default=PlayResult(NOT_HIGH_SCORE),
        )
        result = outcome.value
        result.committed = outcome.committed
        if outcome.committed:
            self._comment_score(result, score, guessed_all)
        elif outcome.exhausted:
            current_app.logger.error(f"[play-dropped] code={code} user={user_id} score={score}")
        return result

    def _comment_score(self, result: PlayResult, score: int, guessed_all: bool) -> None:
        if not result.post_id:
            return
        if guessed_all:
            text = f'**GUESSED ALL {score} CORRECTLY**'
        elif result.feedback == NEW_HIGH_SCORE:
            text = f'**HIGH SCORED** with **{score}**'
        else:
            text = f'Just scored {score}'
        comment = advisory('add_comment', self.host.add_comment, result.post_id, text)
        if comment:
            advisory('approve_comment', self.host.approve_comment, comment['id'])

    # ---- delete ----

    def delete(self, code: str, user_id: str, is_moderator: bool = False) -> DeleteResult:
        def operation(unit):
            record = unit.records.get_category(code)
            if record is None:
                return DeleteResult(False, code, 'Category not found')
            edits = _LedgerEdits(unit.records)
            requester = edits.get(user_id)
            owns = requester is not None and code in requester.created
            if not owns and not is_moderator:
                return DeleteResult(False, code, 'Only the creator may delete this category')

            creator_id = user_id
            if not owns:
                link = unit.records.get_post_link(record.post_id) if record.post_id else None
                creator_id = link.creator_user_id if link else ''
            edits.discard(creator_id, [code])
            edits.discard(record.high_score_user_id, [code])

            unit.begin()
            unit.records.delete_category(code, record.post_id)
            unit.indexes.remove(code)
            unit.records.put_ledgers(edits.changed_ledgers())
            return DeleteResult(True, code, post_id=record.post_id)

        outcome = self.coordinator.run(
            operation, self._retries('DELETE_RETRY_LIMIT', 5), name='delete',
            default=DeleteResult(False, code, 'Category could not be deleted, try again later'),
        )
        result = outcome.value
        if outcome.committed:
            if result.post_id:
                advisory('remove_post', self.host.remove_post, result.post_id)
            current_app.logger.info(f"[category-deleted] code={code} user={user_id}")
        return result

    def bulk_delete_user(self, user_id: str) -> BulkDeleteResult:
        """Remove everything the user created and every high score they hold."""

        def operation(unit):
            ledger = unit.records.get_ledger(user_id)
            if ledger is None:
                return BulkDeleteResult(False)
            created = list(ledger.created)
            held = [c for c in ledger.high_scores if c not in created]
            created_records = unit.records.get_categories(created)
            held_records = unit.records.get_categories(held)

            edits = _LedgerEdits(unit.records)
            edits.preload(r.high_score_user_id for r in created_records.values())
            for code, record in created_records.items():
                if record.high_score_user_id != user_id:
                    edits.discard(record.high_score_user_id, [code])
            resets = {}
            for code, record in held_records.items():
                if record.high_score_user_id == user_id:
                    record.clear_high_score()
                    resets[code] = record
            post_ids = [r.post_id for r in created_records.values() if r.post_id]

            unit.begin()
            for code in created:
                record = created_records.get(code)
                unit.records.delete_category(code, record.post_id if record else '')
            unit.indexes.remove(*created)
            unit.records.put_categories(resets)
            for code in resets:
                unit.indexes.set_score(code, 0)
            unit.records.put_ledgers(edits.changed_ledgers(skip={user_id}))
            unit.records.delete_ledger_entry(user_id)
            return BulkDeleteResult(True, removed=created, reset=sorted(resets), post_ids=post_ids)

        outcome = self.coordinator.run(
            operation, self._retries('BULK_DELETE_RETRY_LIMIT', 5), name='bulk_delete_user',
            default=BulkDeleteResult(False),
        )
        result = outcome.value
        if outcome.committed:
            for post_id in result.post_ids:
                advisory('remove_post', self.host.remove_post, post_id)
            current_app.logger.info(
                f"[user-data-deleted] user={user_id} removed={len(result.removed)} reset={len(result.reset)}"
            )
        elif not result.deleted:
            current_app.logger.warning(f"[user-data-not-deleted] user={user_id} exhausted={outcome.exhausted}")
        return result

    # ---- host events and setup ----

    def handle_post_deleted(self, post_id: str) -> PostDeletedResult:
        """Clean up after a post was deleted on the host."""

        def operation(unit):
            if post_id and unit.records.get_main_post_id() == post_id:
                unit.begin()
                unit.records.set_main_post_id('')
                return PostDeletedResult('main')
            link = unit.records.get_post_link(post_id)
            if link is None:
                return PostDeletedResult('unknown')
            code = link.category_code
            record = unit.records.get_category(code)
            edits = _LedgerEdits(unit.records)
            edits.preload([link.creator_user_id, record.high_score_user_id if record else ''])
            edits.discard(link.creator_user_id, [code])
            if record is not None:
                edits.discard(record.high_score_user_id, [code])

            unit.begin()
            unit.records.delete_category(code, post_id)
            unit.indexes.remove(code)
            unit.records.put_ledgers(edits.changed_ledgers())
            return PostDeletedResult('category', code=code)

        outcome = self.coordinator.run(
            operation, self._retries('POST_DELETE_RETRY_LIMIT', 5), name='post_deleted',
            default=PostDeletedResult('unknown'),
        )
        result = outcome.value
        result.committed = outcome.committed
        if outcome.exhausted:
            current_app.logger.error(f"[post-delete-dropped] post={post_id}")
        return result

    def initialize(self) -> dict:
        """Seed the sequence counter and create the hub post if missing."""
        main_post_id = self.records.get_main_post_id()
        new_post_id = None
        if not main_post_id:
            new_post_id = self.host.create_post('Word Trail Game', kind='main')['id']

        def operation(unit):
            has_sequence = unit.records.has_sequence()
            current_main = unit.records.get_main_post_id()
            if has_sequence and (current_main or not new_post_id):
                return current_main
            unit.begin()
            if not has_sequence:
                unit.records.advance_sequence(INITIAL_CODE)
            if not current_main and new_post_id:
                unit.records.set_main_post_id(new_post_id)
                return new_post_id
            return current_main

        outcome = self.coordinator.run(operation, self._retries('CREATE_RETRY_LIMIT', 5), name='initialize')
        if new_post_id and outcome.value == new_post_id:
            advisory('approve_post', self.host.approve_post, new_post_id)
        elif new_post_id:
            advisory('remove_post', self.host.remove_post, new_post_id)
        return {'main_post_id': outcome.value or '', 'sequence': self.records.get_sequence()}
