"""
finances/exceptions.py
──────────────────────
Errors raised by the ledger engine.  None of them is fatal: views catch
LedgerError and turn it into a JSON error response.

LedgerError
├── ValidationError          – missing or invalid input (e.g. blank reason)
│   └── RiskNotAcknowledgedError – critical advisory not acknowledged
├── InvalidStateError        – transition out of a terminal status
├── AlreadyResolvedError     – lost the compare-and-set race on a transition
├── NotFoundError            – unknown record id
└── ConsistencyError         – a record references a missing obligation
"""


class LedgerError(Exception):
    """Base class; ``message`` is safe to show to the user."""

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    pass


class RiskNotAcknowledgedError(ValidationError):
    """
    Approving the expense would overdraw its funding source and the caller has
    not confirmed it.  ``advisory`` carries the classification to show.
    """

    def __init__(self, message='', advisory=None):
        super().__init__(message)
        self.advisory = advisory


class InvalidStateError(LedgerError):
    pass


class AlreadyResolvedError(LedgerError):
    """Someone else acted on this record between our read and our write."""


class NotFoundError(LedgerError):
    pass


class ConsistencyError(LedgerError):
    def __init__(self, message='', record=None, source_id=None):
        super().__init__(message)
        self.record = record
        self.source_id = source_id
