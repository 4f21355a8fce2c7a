import time
from dataclasses import dataclass, field
from typing import Dict, List

from flask import current_app

from wordtrail.services.store import ANONYMIZED, TransactionCoordinator
from wordtrail.services.store.codec import decode_ledger
from wordtrail.services.store.errors import LedgerFormatError


@dataclass
class JanitorReport:
    scanned: int = 0
    removed_users: List[str] = field(default_factory=list)
    rewritten: List[str] = field(default_factory=list)
    committed: bool = False
    attempts: int = 0

    def to_dict(self):
        return {
            'scanned': self.scanned,
            'removed_users': self.removed_users,
            'rewritten': self.rewritten,
            'committed': self.committed,
            'attempts': self.attempts,
        }


class AccountJanitor:
    """Anonymizes game data of accounts that no longer exist on the host.

    One pass scans every ledger, and for each departed account deletes the
    ledger and rewrites its categories: the creator name of categories it
    created and the holder of high scores it holds become ``[deleted]``.
    Categories are kept. All writes of a pass commit together or not at all.
    """

    def __init__(self, client, host, config):
        self.client = client
        self.host = host
        self.page_size = int(config.get('JANITOR_PAGE_SIZE', 100))
        self.retries = int(config.get('JANITOR_RETRY_LIMIT', 5))
        self.coordinator = TransactionCoordinator(client)

    def run_pass(self) -> JanitorReport:
        existence: Dict[str, bool] = {}

        def account_exists(user_id):
            if user_id not in existence:
                try:
                    existence[user_id] = self.host.user_exists(user_id)
                except Exception as exc:
                    # Unknown is treated as present; the next pass probes again
                    current_app.logger.warning(f"[janitor-probe-failed] user={user_id} error={exc}")
                    existence[user_id] = True
            return existence[user_id]

        def operation(unit):
            report = JanitorReport()
            departed = {}
            categories = {}
            rewritten = set()
            cursor = 0
            while True:
                cursor, page = unit.records.scan_ledger_page(cursor, self.page_size)
                for user_id, raw in page.items():
                    report.scanned += 1
                    if user_id in departed or account_exists(user_id):
                        continue
                    try:
                        ledger = decode_ledger(raw)
                    except LedgerFormatError as exc:
                        # Kept for a later pass; it is the only index of the user's categories
                        current_app.logger.warning(f"[janitor-bad-ledger] user={user_id} error={exc}")
                        continue
                    departed[user_id] = True
                    pending = [c for c in ledger.created + ledger.high_scores if c not in categories]
                    categories.update(unit.records.get_categories(pending))
                    for code in ledger.created:
                        record = categories.get(code)
                        if record is not None:
                            record.creator_username = ANONYMIZED
                            rewritten.add(code)
                    for code in ledger.high_scores:
                        record = categories.get(code)
                        if record is not None and record.high_score_user_id == user_id:
                            record.high_score_username = ANONYMIZED
                            record.high_score_user_id = ANONYMIZED
                            rewritten.add(code)
                if cursor == 0:
                    break

            if not departed:
                return report
            report.removed_users = sorted(departed)
            report.rewritten = sorted(rewritten)
            unit.begin()
            unit.records.delete_ledger_entry(*report.removed_users)
            unit.records.put_categories({code: categories[code] for code in report.rewritten})
            return report

        outcome = self.coordinator.run(operation, self.retries, name='janitor', default=JanitorReport())
        report = outcome.value
        report.committed = outcome.committed
        report.attempts = outcome.attempts
        if outcome.exhausted:
            current_app.logger.warning(f"[janitor-gave-up] attempts={outcome.attempts}")
        else:
            current_app.logger.info(
                f"[janitor-pass] scanned={report.scanned} removed={len(report.removed_users)} "
                f"rewritten={len(report.rewritten)}"
            )
        return report


_janitor_scheduled = False


def schedule_janitor(app) -> None:
    """Run a janitor pass every JANITOR_INTERVAL_SEC in a background task.

    - No-ops in TESTING mode and when the interval is 0
    - Only one schedule per process
    """
    global _janitor_scheduled
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    interval = int(app.config.get('JANITOR_INTERVAL_SEC', 0))
    if interval <= 0 or _janitor_scheduled:
        return
    _janitor_scheduled = True

    from wordtrail import redis_store, socketio
    from wordtrail.services.host import HostPlatform

    def _worker():
        while True:
            time.sleep(interval)
            with app.app_context():
                app.logger.info(f"[janitor-fire] interval={interval}s")
                try:
                    AccountJanitor(redis_store.client, HostPlatform(), app.config).run_pass()
                except Exception as exc:
                    # Store outages must not kill the schedule
                    app.logger.error(f"[janitor-error] {exc}")

    socketio.start_background_task(_worker)
