"""Payroll exception hierarchy."""


class PayrollError(Exception):
    """Base exception for all payroll errors."""


class ConfigurationMissing(PayrollError):
    """No active tax bands exist for a (tax year, tax kind) pair."""

    def __init__(self, tax_year=None, kind=None, message=None):
        self.tax_year = tax_year
        self.kind = kind
        if message is None:
            label = getattr(kind, "value", kind) or "tax"
            message = f"No active {label} bands configured for tax year {tax_year}"
        super().__init__(message)


class InvalidInput(PayrollError):
    """Caller supplied data that violates the calculation contract."""


class PreconditionFailed(PayrollError):
    """Run-level preconditions were violated before any computation began."""


class InvalidStatusTransition(PreconditionFailed):
    """Payroll run status may only move forward: draft -> processed -> paid."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move payroll run from {getattr(current, 'value', current)} "
            f"to {getattr(target, 'value', target)}"
        )


class PayrollNotFound(PayrollError):
    """Requested payroll run does not exist."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Payroll not found with id: {run_id}")


class ConfigurationStoreError(PayrollError):
    """The external tax band store could not be reached or answered badly."""
