"""Pydantic schemas for API request/response validation"""

import math
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from cashflow_gateway.domain.analytics import BillCoverageReport, CashCrunch, Runway
from cashflow_gateway.domain.exceptions import InvalidRuleConfigurationError
from cashflow_gateway.domain.models import (
    EXPENSE_RULE_CLASSES,
    AmortizationStep,
    BalanceStatus,
    CreditCardPayoffSummary,
    CreditConfig,
    DayBalance,
    ExpenseRule,
    ExpenseType,
    Frequency,
    IncomeSource,
    InstallmentConfig,
    LoanCalculationType,
    LoanConfig,
    MinimumPaymentMethod,
    MonthlyBreakdown,
    OccurrenceOverride,
    PaymentBreakdown,
    PaymentStrategy,
    ScheduleConfig,
    ScheduledInstallment,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
    WeekendAdjustment,
)


def _finite(value: float) -> Optional[float]:
    """JSON has no infinity; "never" is sent as null"""
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class ScheduleConfigSchema(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0=Monday .. 6=Sunday")
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    specific_days: Optional[List[int]] = None
    interval_weeks: Optional[int] = Field(None, ge=1)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)

    def to_domain(self) -> ScheduleConfig:
        return ScheduleConfig(**self.model_dump())


class OccurrenceOverrideSchema(BaseModel):
    amount: Optional[float] = None
    scheduled_date: Optional[date] = None
    notes: Optional[str] = None
    skipped: bool = False

    def to_domain(self) -> OccurrenceOverride:
        return OccurrenceOverride(**self.model_dump())


class RuleSchema(BaseModel):
    """Fields shared by income sources and expense rules"""

    id: str = Field(..., min_length=1)
    name: str
    category: str
    amount: float = Field(..., ge=0)
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    schedule: ScheduleConfigSchema = Field(default_factory=ScheduleConfigSchema)
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.NONE
    is_active: bool = True
    notes: Optional[str] = None
    occurrence_overrides: Dict[str, OccurrenceOverrideSchema] = Field(default_factory=dict)

    def _rule_fields(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "amount": self.amount,
            "frequency": self.frequency,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "schedule": self.schedule.to_domain(),
            "weekend_adjustment": self.weekend_adjustment,
            "is_active": self.is_active,
            "notes": self.notes,
            "occurrence_overrides": {k: v.to_domain() for k, v in self.occurrence_overrides.items()},
        }


class IncomeSourceSchema(RuleSchema):
    def to_domain(self) -> IncomeSource:
        return IncomeSource(**self._rule_fields())


class LoanConfigSchema(BaseModel):
    principal_amount: float = Field(..., gt=0)
    current_balance: float = Field(..., ge=0)
    interest_rate: float = Field(..., ge=0, description="Annual percentage rate, e.g. 6.0")
    term_months: int = Field(..., gt=0)
    payments_made: int = Field(0, ge=0)
    calculation_type: LoanCalculationType = LoanCalculationType.AMORTIZED

    def to_domain(self) -> LoanConfig:
        return LoanConfig(**self.model_dump())


class CreditConfigSchema(BaseModel):
    credit_limit: float = Field(..., ge=0)
    current_balance: float = Field(..., ge=0)
    apr: float = Field(..., ge=0)
    minimum_payment_percent: float = Field(2.0, ge=0)
    minimum_payment_floor: float = Field(25.0, ge=0)
    minimum_payment_method: MinimumPaymentMethod = MinimumPaymentMethod.PERCENT_ONLY
    statement_date: int = Field(5, ge=1, le=31)
    due_date: int = Field(1, ge=1, le=31)
    payment_strategy: PaymentStrategy = PaymentStrategy.MINIMUM
    fixed_payment_amount: Optional[float] = Field(None, gt=0)

    def to_domain(self) -> CreditConfig:
        return CreditConfig(**self.model_dump())


class InstallmentConfigSchema(BaseModel):
    total_amount: float = Field(..., gt=0)
    installment_count: int = Field(..., gt=0)
    installment_amount: float = Field(..., gt=0)
    installments_paid: int = Field(0, ge=0)
    has_interest: bool = False
    interest_rate: Optional[float] = Field(None, ge=0)

    def to_domain(self) -> InstallmentConfig:
        return InstallmentConfig(**self.model_dump())


class ExpenseRuleSchema(RuleSchema):
    """Expense rule; debt kinds carry the config block matching their expense_type"""

    expense_type: ExpenseType = ExpenseType.FIXED
    loan: Optional[LoanConfigSchema] = None
    credit: Optional[CreditConfigSchema] = None
    installment: Optional[InstallmentConfigSchema] = None

    def to_domain(self) -> ExpenseRule:
        rule_class = EXPENSE_RULE_CLASSES[self.expense_type]
        fields = self._rule_fields()

        if self.expense_type == ExpenseType.CASH_LOAN:
            if self.loan is None:
                raise InvalidRuleConfigurationError(f"Loan rule {self.id!r} is missing its loan config")
            return rule_class(**fields, loan=self.loan.to_domain())

        if self.expense_type == ExpenseType.CREDIT_CARD:
            if self.credit is None:
                raise InvalidRuleConfigurationError(f"Credit card rule {self.id!r} is missing its credit config")
            return rule_class(**fields, credit=self.credit.to_domain())

        if self.expense_type == ExpenseType.INSTALLMENT:
            if self.installment is None:
                raise InvalidRuleConfigurationError(
                    f"Installment rule {self.id!r} is missing its installment config"
                )
            return rule_class(**fields, installment=self.installment.to_domain())

        return rule_class(**fields)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class PaymentBreakdownSchema(BaseModel):
    principal_paid: float
    interest_paid: float
    remaining_balance: float
    payment_number: int
    total_payments: int
    negative_amortization: bool = False

    def to_domain(self) -> PaymentBreakdown:
        return PaymentBreakdown(**self.model_dump())

    @classmethod
    def from_domain(cls, breakdown: PaymentBreakdown) -> "PaymentBreakdownSchema":
        return cls(
            principal_paid=breakdown.principal_paid,
            interest_paid=breakdown.interest_paid,
            remaining_balance=breakdown.remaining_balance,
            payment_number=breakdown.payment_number,
            total_payments=breakdown.total_payments,
            negative_amortization=breakdown.negative_amortization,
        )


class TransactionSchema(BaseModel):
    """Stored (user-recorded) transaction"""

    id: str = Field(..., min_length=1)
    name: str
    type: TransactionType
    category: str
    source_type: SourceType = SourceType.MANUAL
    scheduled_date: date
    projected_amount: float
    status: TransactionStatus = TransactionStatus.PROJECTED
    source_id: Optional[str] = None
    occurrence_id: Optional[str] = None
    actual_amount: Optional[float] = None
    actual_date: Optional[date] = None
    notes: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdownSchema] = None

    def to_domain(self) -> Transaction:
        fields = self.model_dump(exclude={"payment_breakdown"})
        breakdown = self.payment_breakdown.to_domain() if self.payment_breakdown else None
        return Transaction(**fields, payment_breakdown=breakdown)


class TransactionResponse(TransactionSchema):
    """Effective transaction, either stored or projected"""

    is_projection: bool
    effective_date: date
    effective_amount: float

    @classmethod
    def from_domain(cls, t: Transaction) -> "TransactionResponse":
        return cls(
            id=t.id,
            name=t.name,
            type=t.type,
            category=t.category,
            source_type=t.source_type,
            scheduled_date=t.scheduled_date,
            projected_amount=t.projected_amount,
            status=t.status,
            source_id=t.source_id,
            occurrence_id=t.occurrence_id,
            actual_amount=t.actual_amount,
            actual_date=t.actual_date,
            notes=t.notes,
            payment_breakdown=PaymentBreakdownSchema.from_domain(t.payment_breakdown) if t.payment_breakdown else None,
            is_projection=t.is_projection,
            effective_date=t.effective_date,
            effective_amount=t.effective_amount,
        )


# ---------------------------------------------------------------------------
# Projections & balances
# ---------------------------------------------------------------------------


class ProjectionRequest(BaseModel):
    """Request body for POST /v1/projections"""

    view_start: date
    view_end: date
    income_sources: List[IncomeSourceSchema] = Field(default_factory=list)
    expense_rules: List[ExpenseRuleSchema] = Field(default_factory=list)
    stored_transactions: List[TransactionSchema] = Field(default_factory=list)


class ProjectionResponse(BaseModel):
    view_start: date
    view_end: date
    transactions: List[TransactionResponse]


class BalanceRequest(ProjectionRequest):
    """Request body for POST /v1/balances"""

    baseline: float
    warning_threshold: Optional[float] = None


class DayBalanceSchema(BaseModel):
    date: date
    opening_balance: float
    closing_balance: float
    total_income: float
    total_expenses: float
    status: BalanceStatus
    transaction_ids: List[str]

    @classmethod
    def from_domain(cls, day: DayBalance) -> "DayBalanceSchema":
        return cls(
            date=day.date,
            opening_balance=day.opening_balance,
            closing_balance=day.closing_balance,
            total_income=day.total_income,
            total_expenses=day.total_expenses,
            status=day.status,
            transaction_ids=[t.id for t in day.transactions],
        )


class BalanceResponse(BaseModel):
    balances: List[DayBalanceSchema]
    transactions: List[TransactionResponse]


# ---------------------------------------------------------------------------
# Debt schedules
# ---------------------------------------------------------------------------


class LoanScheduleRequest(BaseModel):
    """Request body for POST /v1/loans/schedule"""

    principal: float = Field(..., gt=0)
    annual_rate: float = Field(..., ge=0)
    start_date: date
    term_months: Optional[int] = Field(None, gt=0)
    monthly_payment: Optional[float] = Field(None, gt=0)
    calculation_type: LoanCalculationType = LoanCalculationType.AMORTIZED


class AmortizationStepSchema(BaseModel):
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    negative_amortization: bool = False

    @classmethod
    def from_domain(cls, step: AmortizationStep) -> "AmortizationStepSchema":
        return cls(
            date=step.date,
            payment=step.payment,
            principal=step.principal,
            interest=step.interest,
            remaining_balance=step.remaining_balance,
            negative_amortization=step.negative_amortization,
        )


class LoanScheduleResponse(BaseModel):
    payments: int
    total_interest: float
    total_paid: float
    schedule: List[AmortizationStepSchema]


class CreditPayoffRequest(BaseModel):
    """Request body for POST /v1/credit-cards/payoff"""

    credit: CreditConfigSchema
    start_date: Optional[date] = None
    principal_paid_so_far: float = 0.0
    interest_paid_so_far: float = 0.0


class MonthlyBreakdownSchema(BaseModel):
    month: int
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    cumulative_interest: float
    cumulative_principal: float
    negative_amortization: bool = False

    @classmethod
    def from_domain(cls, m: MonthlyBreakdown) -> "MonthlyBreakdownSchema":
        return cls(
            month=m.month,
            date=m.date,
            payment=m.payment,
            principal=m.principal,
            interest=m.interest,
            remaining_balance=m.remaining_balance,
            cumulative_interest=m.cumulative_interest,
            cumulative_principal=m.cumulative_principal,
            negative_amortization=m.negative_amortization,
        )


class PayoffScenarioSchema(BaseModel):
    name: str
    monthly_payment: float
    months_to_payoff: int
    total_interest: float
    total_amount: float
    interest_savings: float
    time_savings_months: int


class CreditPayoffResponse(BaseModel):
    payoff_date: Optional[date]
    payoff_time: str
    months_to_payoff: Optional[float] = Field(None, description="null when the plan never pays off")
    years_to_payoff: Optional[float] = None
    total_amount_to_pay: Optional[float] = None
    total_interest_to_pay: Optional[float] = None
    current_monthly_interest: float
    effective_monthly_payment: float
    principal_paid_so_far: float
    interest_paid_so_far: float
    is_minimum_payment_trap: bool
    scenarios: List[PayoffScenarioSchema]
    schedule: List[MonthlyBreakdownSchema]

    @classmethod
    def from_domain(cls, summary: CreditCardPayoffSummary, payoff_time: str) -> "CreditPayoffResponse":
        return cls(
            payoff_date=summary.payoff_date,
            payoff_time=payoff_time,
            months_to_payoff=_finite(summary.months_to_payoff),
            years_to_payoff=_finite(summary.years_to_payoff),
            total_amount_to_pay=_finite(summary.total_amount_to_pay),
            total_interest_to_pay=_finite(summary.total_interest_to_pay),
            current_monthly_interest=summary.current_monthly_interest,
            effective_monthly_payment=summary.effective_monthly_payment,
            principal_paid_so_far=summary.principal_paid_so_far,
            interest_paid_so_far=summary.interest_paid_so_far,
            is_minimum_payment_trap=summary.is_minimum_payment_trap,
            scenarios=[PayoffScenarioSchema(**vars(s)) for s in summary.scenarios],
            schedule=[MonthlyBreakdownSchema.from_domain(m) for m in summary.schedule],
        )


class InstallmentScheduleRequest(BaseModel):
    """Request body for POST /v1/installments/schedule"""

    installment: InstallmentConfigSchema
    start_date: date


class ScheduledInstallmentSchema(BaseModel):
    due_date: date
    amount: float
    payment_number: int
    total_payments: int
    remaining_balance: float

    @classmethod
    def from_domain(cls, i: ScheduledInstallment) -> "ScheduledInstallmentSchema":
        return cls(
            due_date=i.due_date,
            amount=i.amount,
            payment_number=i.payment_number,
            total_payments=i.total_payments,
            remaining_balance=i.remaining_balance,
        )


class InstallmentScheduleResponse(BaseModel):
    remaining_installments: int
    schedule: List[ScheduledInstallmentSchema]


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------


class ForecastRequest(ProjectionRequest):
    """Request body for POST /v1/forecast/summary"""

    balance: float
    today: Optional[date] = None


class RunwaySchema(BaseModel):
    days: int
    run_out_date: Optional[date] = None

    @classmethod
    def from_domain(cls, runway: Runway) -> "RunwaySchema":
        return cls(days=runway.days, run_out_date=runway.run_out_date)


class CashCrunchSchema(BaseModel):
    date: date
    shortfall: float

    @classmethod
    def from_domain(cls, crunch: CashCrunch) -> "CashCrunchSchema":
        return cls(date=crunch.date, shortfall=crunch.shortfall)


class UpcomingBillSchema(BaseModel):
    transaction_id: str
    name: str
    scheduled_date: date
    amount: float
    days_until_due: int
    can_cover: bool
    shortfall: Optional[float] = None


class ShortfallSchema(BaseModel):
    date: date
    amount: float
    bill_name: str


class BillCoverageSchema(BaseModel):
    current_balance: float
    total_upcoming: float
    projected_balance: float
    can_cover_all: bool
    first_shortfall: Optional[ShortfallSchema] = None
    upcoming_bills: List[UpcomingBillSchema]

    @classmethod
    def from_domain(cls, report: BillCoverageReport) -> "BillCoverageSchema":
        first = report.first_shortfall
        return cls(
            current_balance=report.current_balance,
            total_upcoming=report.total_upcoming,
            projected_balance=report.projected_balance,
            can_cover_all=report.can_cover_all,
            first_shortfall=(
                ShortfallSchema(date=first.date, amount=first.amount, bill_name=first.bill_name) if first else None
            ),
            upcoming_bills=[
                UpcomingBillSchema(
                    transaction_id=b.transaction.id,
                    name=b.transaction.name,
                    scheduled_date=b.transaction.scheduled_date,
                    amount=b.transaction.effective_amount,
                    days_until_due=b.days_until_due,
                    can_cover=b.can_cover,
                    shortfall=b.shortfall,
                )
                for b in report.upcoming_bills
            ],
        )


class ForecastResponse(BaseModel):
    runway: RunwaySchema
    next_crunch: Optional[CashCrunchSchema] = None
    bill_coverage: BillCoverageSchema
