"""
Payment ledger errors.

Raised when the ledger runs in strict mode; in compatibility mode unknown
ids are ignored and transitions are not guarded. ``AppointmentsAlreadyClaimed``
is raised in both modes.
"""


class PaymentLedgerError(Exception):
    """Base class for ledger failures."""


class BatchNotFound(PaymentLedgerError):
    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__(f'Payment batch {batch_id} not found')


class InvalidTransition(PaymentLedgerError):
    def __init__(self, batch_id, from_status, to_status, valid):
        self.batch_id = batch_id
        self.from_status = from_status
        self.to_status = to_status
        self.valid = list(valid)
        super().__init__(
            f'Invalid transition from {from_status} to {to_status}. '
            f'Valid transitions: {", ".join(self.valid) if self.valid else "none (terminal state)"}'
        )


class EmptyBatch(PaymentLedgerError):
    def __init__(self):
        super().__init__('A payment batch needs at least one appointment')


class MixedPsychologists(PaymentLedgerError):
    def __init__(self, psychologist_id, foreign_ids):
        self.psychologist_id = psychologist_id
        self.foreign_ids = list(foreign_ids)
        super().__init__(
            f'Appointments {", ".join(self.foreign_ids)} do not belong to psychologist {psychologist_id}'
        )


class BlankContestationReason(PaymentLedgerError):
    def __init__(self):
        super().__init__('A contestation needs a non-blank reason')


class AppointmentsAlreadyClaimed(PaymentLedgerError):
    def __init__(self, appointment_ids):
        self.appointment_ids = list(appointment_ids)
        super().__init__(
            f'Appointments {", ".join(self.appointment_ids)} already belong to an active payment batch'
        )
