class StoreError(Exception):
    """A store primitive was used outside the protocol it belongs to."""


class CategoryFormatError(ValueError):
    pass


class LedgerFormatError(ValueError):
    pass
