from .calculator import PayrollCalculator
from .exceptions import (
    ConfigurationError,
    InvalidInputError,
    NegativeNetPayError,
    PayrollError,
    UnbalancedEntryError,
)
from .journal import build_payroll_journal_entry, compute_trial_balance
from .models import (
    JournalEntry,
    JournalLine,
    PayFrequency,
    PayrollLineItem,
    ResidencyStatus,
    TrialBalance,
)
from .tax_tables import AccountMapping, ContributionRates, RateConfig, TaxTableRepository
from .wizard import PayrollRunWizard

__all__ = [
    "PayrollCalculator",
    "PayrollRunWizard",
    "TaxTableRepository",
    "RateConfig",
    "ContributionRates",
    "AccountMapping",
    "ResidencyStatus",
    "PayFrequency",
    "PayrollLineItem",
    "JournalLine",
    "JournalEntry",
    "TrialBalance",
    "build_payroll_journal_entry",
    "compute_trial_balance",
    "PayrollError",
    "InvalidInputError",
    "NegativeNetPayError",
    "ConfigurationError",
    "UnbalancedEntryError",
]
