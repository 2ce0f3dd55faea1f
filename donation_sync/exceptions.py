"""
Exceptions raised by the sync layer
"""


class SyncError(Exception):
    """Base class for donation sync errors"""


class RelationalWriteError(SyncError):
    """The relational store did not accept a write"""


class RecordNotFoundError(RelationalWriteError):
    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"No {table} record with id {record_id}")


class MirrorWriteError(SyncError):
    """A write whose only target is the real-time mirror failed"""


class UnknownStatusError(SyncError, ValueError):
    def __init__(self, domain: str, value):
        self.domain = domain
        self.value = value
        super().__init__(f"Unmapped {domain} status: {value!r}")
