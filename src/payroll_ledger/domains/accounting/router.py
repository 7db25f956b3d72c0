from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from payroll_ledger.api.deps import get_store
from payroll_ledger.exceptions import PayrollError
from payroll_ledger.journal import compute_trial_balance
from payroll_ledger.models import JournalEntry
from payroll_ledger.storage import LedgerStore

router = APIRouter(prefix="/accounting", tags=["accounting"])


class JournalLineOut(BaseModel):
    account_name: str
    debit_amount: int
    credit_amount: int
    description: str = ""


class JournalEntryOut(BaseModel):
    entry_number: str | None = None
    entry_date: date | None = None
    description: str
    source: str
    lines: list[JournalLineOut]
    total_debits: int
    total_credits: int
    is_balanced: bool


class TrialBalanceRowOut(BaseModel):
    account_name: str
    debit_balance: int
    credit_balance: int


class TrialBalanceOut(BaseModel):
    period: str | None = None
    total_debits: int
    total_credits: int
    is_balanced: bool
    rows: list[TrialBalanceRowOut]


def entry_out(entry: JournalEntry) -> JournalEntryOut:
    return JournalEntryOut(
        entry_number=entry.entry_number,
        entry_date=entry.entry_date,
        description=entry.description,
        source=entry.source,
        lines=[
            JournalLineOut(
                account_name=line.account_name,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                description=line.description,
            )
            for line in entry.lines
        ],
        total_debits=entry.total_debits,
        total_credits=entry.total_credits,
        is_balanced=entry.is_balanced,
    )


def _entries_for(store: LedgerStore, period: str | None) -> list[JournalEntry]:
    try:
        return store.entries(period)
    except PayrollError as exc:
        raise HTTPException(status_code=422, detail={"code": exc.code, "message": exc.message})


@router.get("/entries", response_model=list[JournalEntryOut])
def list_entries(period: str | None = None, store: LedgerStore = Depends(get_store)) -> list[JournalEntryOut]:
    return [entry_out(entry) for entry in _entries_for(store, period)]


@router.get("/trial-balance", response_model=TrialBalanceOut)
def trial_balance(period: str | None = None, store: LedgerStore = Depends(get_store)) -> TrialBalanceOut:
    balance = compute_trial_balance(_entries_for(store, period))
    return TrialBalanceOut(
        period=period,
        total_debits=balance.total_debits,
        total_credits=balance.total_credits,
        is_balanced=balance.is_balanced,
        rows=[
            TrialBalanceRowOut(
                account_name=row.account_name,
                debit_balance=row.debit_balance,
                credit_balance=row.credit_balance,
            )
            for row in balance.rows
        ],
    )
