"""Typed errors raised by the payroll calculator and the journal builder.

Every error carries a machine-readable ``code`` so callers (the pay-run
wizard, the CLI, the HTTP API) can report failures without parsing messages.

    PayrollError
    +-- InvalidInputError      INVALID_INPUT
    +-- NegativeNetPayError    NEGATIVE_NET_PAY
    +-- ConfigurationError     CONFIGURATION_ERROR
    +-- UnbalancedEntryError   UNBALANCED_ENTRY
"""

from __future__ import annotations

from typing import Optional


class PayrollError(Exception):
    code: str = "PAYROLL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(PayrollError, ValueError):
    """Negative, non-finite or non-integer monetary input."""

    code = "INVALID_INPUT"


class NegativeNetPayError(PayrollError):
    code = "NEGATIVE_NET_PAY"

    def __init__(self, gross_salary: int, net_pay: int, employee_id: Optional[str] = None):
        subject = f"employee {employee_id}" if employee_id else "payroll line"
        super().__init__(
            f"Net pay for {subject} would be {net_pay} on gross {gross_salary}; "
            "check tax and contribution rates"
        )
        self.gross_salary = gross_salary
        self.net_pay = net_pay
        self.employee_id = employee_id


class ConfigurationError(PayrollError):
    """Missing or malformed rate table or account mapping."""

    code = "CONFIGURATION_ERROR"


class UnbalancedEntryError(PayrollError):
    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debits: int, total_credits: int, message: Optional[str] = None):
        super().__init__(message or f"Debits {total_debits} do not equal credits {total_credits}")
        self.total_debits = total_debits
        self.total_credits = total_credits
