from datetime import date
from typing import Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from payroll_ledger.api.deps import get_calculator, get_store
from payroll_ledger.calculator import PayrollCalculator
from payroll_ledger.core.logging import get_logger
from payroll_ledger.domains.accounting.router import JournalEntryOut, entry_out
from payroll_ledger.exceptions import PayrollError
from payroll_ledger.models import EmployeePayRequest, PayFrequency, ResidencyStatus
from payroll_ledger.storage import LedgerStore, parse_period
from payroll_ledger.wizard import PayrollRunPreview, PayrollRunWizard

router = APIRouter(prefix="/payroll", tags=["payroll"])
logger = get_logger(__name__)


class PayrollLineIn(BaseModel):
    gross_salary: int
    residency: ResidencyStatus = ResidencyStatus.RESIDENT
    frequency: PayFrequency = PayFrequency.MONTHLY
    periods_in_month: int | None = Field(default=None, gt=0)


class EmployeeLineIn(PayrollLineIn):
    employee_id: str


class PayrollLineOut(BaseModel):
    gross_salary: int
    tax_withheld: int
    employee_contribution: int
    employer_contribution: int
    net_pay: int
    warnings: list[str] = []


class EmployeeLineOut(PayrollLineOut):
    employee_id: str
    residency: ResidencyStatus


class RunFailureOut(BaseModel):
    employee_id: str
    code: str
    message: str


class PayRunIn(BaseModel):
    period: str
    pay_date: date | None = None
    employees: list[EmployeeLineIn]


class PayRunPreviewOut(BaseModel):
    period: str
    employees: list[EmployeeLineOut]
    failures: list[RunFailureOut]
    gross_pay: int
    tax_withheld: int
    employee_contributions: int
    employer_contributions: int
    total_net_pay: int
    journal_entry: JournalEntryOut | None = None


def _domain_error(exc: PayrollError) -> HTTPException:
    return HTTPException(status_code=422, detail={"code": exc.code, "message": exc.message})


def _server_error(exc: PayrollError) -> HTTPException:
    return HTTPException(status_code=500, detail={"code": exc.code, "message": exc.message})


def _run_preview(payload: PayRunIn, calculator: PayrollCalculator) -> Tuple[PayrollRunWizard, PayrollRunPreview]:
    try:
        wizard = PayrollRunWizard(calculator)
    except PayrollError as exc:
        raise _server_error(exc)
    try:
        parse_period(payload.period)
    except PayrollError as exc:
        raise _domain_error(exc)
    requests = [
        EmployeePayRequest(
            employee_id=row.employee_id,
            gross_salary=row.gross_salary,
            residency=row.residency,
            frequency=row.frequency,
            periods_in_month=row.periods_in_month,
        )
        for row in payload.employees
    ]
    return wizard, wizard.preview(requests)


def _preview_out(payload: PayRunIn, wizard: PayrollRunWizard, preview: PayrollRunPreview) -> PayRunPreviewOut:
    journal_entry = None
    if preview.employees:
        try:
            entry = preview.journal_entry(
                wizard.accounts,
                entry_date=payload.pay_date,
                description=f"Payroll for {payload.period}",
            )
        except PayrollError as exc:
            raise _server_error(exc)
        journal_entry = entry_out(entry)
    return PayRunPreviewOut(
        period=payload.period,
        employees=[
            EmployeeLineOut(
                employee_id=result.employee_id,
                residency=result.residency,
                warnings=result.warnings,
                **result.line.as_dict(),
            )
            for result in preview.employees.values()
        ],
        failures=[
            RunFailureOut(employee_id=f.employee_id, code=f.code, message=f.message) for f in preview.failures
        ],
        gross_pay=preview.gross_pay,
        tax_withheld=preview.tax_withheld,
        employee_contributions=preview.employee_contributions,
        employer_contributions=preview.employer_contributions,
        total_net_pay=preview.total_net_pay,
        journal_entry=journal_entry,
    )


@router.post("/lines", response_model=PayrollLineOut)
def calculate_line(payload: PayrollLineIn, calculator: PayrollCalculator = Depends(get_calculator)) -> PayrollLineOut:
    try:
        line = calculator.build_payroll_line(
            payload.gross_salary, payload.residency, payload.frequency, periods_in_month=payload.periods_in_month
        )
    except PayrollError as exc:
        raise _domain_error(exc)
    return PayrollLineOut(
        warnings=calculator.warnings_for(
            payload.gross_salary, payload.residency, payload.frequency, payload.periods_in_month
        ),
        **line.as_dict(),
    )


@router.post("/preview", response_model=PayRunPreviewOut)
def preview_run(payload: PayRunIn, calculator: PayrollCalculator = Depends(get_calculator)) -> PayRunPreviewOut:
    wizard, preview = _run_preview(payload, calculator)
    return _preview_out(payload, wizard, preview)


@router.post("/runs", response_model=JournalEntryOut, status_code=201)
def post_run(
    payload: PayRunIn,
    calculator: PayrollCalculator = Depends(get_calculator),
    store: LedgerStore = Depends(get_store),
) -> JournalEntryOut:
    wizard, preview = _run_preview(payload, calculator)
    if preview.has_failures:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "PAY_RUN_REJECTED",
                "failures": [
                    {"employee_id": f.employee_id, "code": f.code, "message": f.message} for f in preview.failures
                ],
            },
        )
    if not preview.employees:
        raise HTTPException(status_code=422, detail={"code": "EMPTY_PAY_RUN", "message": "No employees in pay run"})
    try:
        entry = preview.journal_entry(
            wizard.accounts,
            entry_date=payload.pay_date,
            description=f"Payroll for {payload.period}",
        )
        posted = store.post_and_save(entry, payload.period)
    except PayrollError as exc:
        raise _server_error(exc)
    logger.info("pay_run_posted", period=payload.period, entry_number=posted.entry_number, employees=len(preview.employees))
    return entry_out(posted)
