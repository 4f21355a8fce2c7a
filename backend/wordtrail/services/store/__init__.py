"""Record store over the shared key-value store.

Codec, code generator, record and index access, and the optimistic
transaction coordinator every writer goes through.
"""

from .codec import CategoryRecord, PostLink, UserLedger, ANONYMIZED
from .codes import INITIAL_CODE, next_code
from .indexes import IndexMaintainer
from .records import RecordStore
from .transactions import Outcome, TransactionCoordinator, Unit
