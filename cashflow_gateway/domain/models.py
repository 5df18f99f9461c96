"""Domain models - pure Python dataclasses representing business entities"""

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import ClassVar, Dict, List, Optional

from cashflow_gateway.domain.exceptions import (
    InvalidOccurrenceIdError,
    InvalidProjectionIdError,
    InvalidRuleConfigurationError,
)

PROJECTION_ID_PREFIX = "proj_"
PROJECTION_ID_SEPARATOR = "::"

# Logical-period suffixes: once | YYYY-MM-DD | YYYY-Www | BWn | YYYY-MM-n | YYYY-MM | YYYY-Qn | YYYY
OCCURRENCE_SUFFIX_PATTERN = re.compile(
    r"^(once"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{4}-W\d{2}"
    r"|BW\d+"
    r"|\d{4}-\d{2}-\d+"
    r"|\d{4}-\d{2}"
    r"|\d{4}-Q[1-4]"
    r"|\d{4})$"
)


class Frequency(str, Enum):
    ONE_TIME = "one-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class WeekendAdjustment(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    NONE = "none"


class ExpenseType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"
    ONE_TIME = "one-time"
    CASH_LOAN = "cash_loan"
    CREDIT_CARD = "credit_card"
    INSTALLMENT = "installment"


class LoanCalculationType(str, Enum):
    AMORTIZED = "amortized"  # level payment, declining interest
    REDUCING_BALANCE = "reducing_balance"  # equal principal, interest on remaining balance
    FLAT_RATE = "flat_rate"  # equal principal, interest on original principal


class MinimumPaymentMethod(str, Enum):
    PERCENT_ONLY = "percent_only"
    PERCENT_PLUS_INTEREST = "percent_plus_interest"


class PaymentStrategy(str, Enum):
    MINIMUM = "minimum"
    FIXED = "fixed"
    FULL_BALANCE = "full_balance"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class SourceType(str, Enum):
    INCOME_SOURCE = "income_source"
    EXPENSE_RULE = "expense_rule"
    MANUAL = "manual"


class TransactionStatus(str, Enum):
    PROJECTED = "projected"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class BalanceStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


# ---------------------------------------------------------------------------
# Recurrence rules
# ---------------------------------------------------------------------------


@dataclass
class ScheduleConfig:
    """Frequency-specific schedule parameters (all optional, defaults derive from start date)"""

    day_of_week: Optional[int] = None  # 0=Monday .. 6=Sunday
    day_of_month: Optional[int] = None
    specific_days: Optional[List[int]] = None
    interval_weeks: Optional[int] = None
    month_of_year: Optional[int] = None  # 1-12


@dataclass
class OccurrenceOverride:
    """User edit attached to one logical occurrence of a rule"""

    amount: Optional[float] = None
    scheduled_date: Optional[date] = None
    notes: Optional[str] = None
    skipped: bool = False


@dataclass
class RecurrenceRule:
    """Shared shape behind income sources and expense rules"""

    id: str
    name: str
    category: str
    amount: float
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.NONE
    is_active: bool = True
    notes: Optional[str] = None
    occurrence_overrides: Dict[str, OccurrenceOverride] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id or PROJECTION_ID_SEPARATOR in self.id:
            raise InvalidRuleConfigurationError(f"Invalid rule id: {self.id!r}")
        for occurrence_id in self.occurrence_overrides:
            if not occurrence_id_matches(self.id, occurrence_id):
                raise InvalidOccurrenceIdError(
                    f"Override key {occurrence_id!r} is not a valid occurrence id for rule {self.id!r}"
                )


@dataclass
class IncomeSource(RecurrenceRule):
    """Recurring or one-time income"""

    pass


@dataclass
class ExpenseRule(RecurrenceRule):
    """Base of the closed set of expense kinds below"""

    expense_type: ClassVar[ExpenseType]


@dataclass
class FixedExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.FIXED


@dataclass
class VariableExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.VARIABLE


@dataclass
class OneTimeExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.ONE_TIME


@dataclass
class LoanConfig:
    principal_amount: float
    current_balance: float
    interest_rate: float  # annual %, e.g. 6.0
    term_months: int
    payments_made: int = 0
    calculation_type: LoanCalculationType = LoanCalculationType.AMORTIZED

    def __post_init__(self) -> None:
        if self.term_months <= 0:
            raise InvalidRuleConfigurationError("Loan term must be positive")
        if not 0 <= self.payments_made <= self.term_months:
            raise InvalidRuleConfigurationError("Loan payments made must be between 0 and the term")
        if self.current_balance < 0 or self.current_balance > self.principal_amount:
            raise InvalidRuleConfigurationError("Loan balance must be between 0 and the principal")

    @property
    def remaining_payments(self) -> int:
        return self.term_months - self.payments_made


@dataclass
class CreditConfig:
    credit_limit: float
    current_balance: float
    apr: float  # annual %, e.g. 24.0
    minimum_payment_percent: float = 2.0
    minimum_payment_floor: float = 25.0
    minimum_payment_method: MinimumPaymentMethod = MinimumPaymentMethod.PERCENT_ONLY
    statement_date: int = 5
    due_date: int = 1
    payment_strategy: PaymentStrategy = PaymentStrategy.MINIMUM
    fixed_payment_amount: Optional[float] = None

    def __post_init__(self) -> None:
        if self.current_balance < 0:
            raise InvalidRuleConfigurationError("Credit card balance cannot be negative")
        if not 1 <= self.due_date <= 31:
            raise InvalidRuleConfigurationError("Credit card due date must be a day of month (1-31)")
        if not 1 <= self.statement_date <= 31:
            raise InvalidRuleConfigurationError("Credit card statement date must be a day of month (1-31)")

    @property
    def monthly_rate(self) -> float:
        return self.apr / 1200


@dataclass
class InstallmentConfig:
    total_amount: float
    installment_count: int
    installment_amount: float
    installments_paid: int = 0
    has_interest: bool = False
    interest_rate: Optional[float] = None

    def __post_init__(self) -> None:
        if self.installment_count <= 0:
            raise InvalidRuleConfigurationError("Installment count must be positive")
        if not 0 <= self.installments_paid <= self.installment_count:
            raise InvalidRuleConfigurationError("Installments paid must be between 0 and the count")

    @property
    def remaining_installments(self) -> int:
        return self.installment_count - self.installments_paid


@dataclass(kw_only=True)
class LoanExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.CASH_LOAN
    loan: LoanConfig


@dataclass(kw_only=True)
class CreditCardExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.CREDIT_CARD
    credit: CreditConfig


@dataclass(kw_only=True)
class InstallmentExpense(ExpenseRule):
    expense_type: ClassVar[ExpenseType] = ExpenseType.INSTALLMENT
    installment: InstallmentConfig


EXPENSE_RULE_CLASSES: Dict[ExpenseType, type] = {
    ExpenseType.FIXED: FixedExpense,
    ExpenseType.VARIABLE: VariableExpense,
    ExpenseType.ONE_TIME: OneTimeExpense,
    ExpenseType.CASH_LOAN: LoanExpense,
    ExpenseType.CREDIT_CARD: CreditCardExpense,
    ExpenseType.INSTALLMENT: InstallmentExpense,
}


def occurrence_id_matches(source_id: str, occurrence_id: str) -> bool:
    """True if occurrence_id is `<source_id>_<logical period>`"""
    prefix = f"{source_id}_"
    if not occurrence_id.startswith(prefix):
        return False
    return OCCURRENCE_SUFFIX_PATTERN.match(occurrence_id[len(prefix):]) is not None


def calculate_installment_amount(
    total: float,
    count: int,
    has_interest: bool = False,
    interest_rate: float | None = None,
) -> float:
    """
    Flat per-installment amount, computed once when the rule is created.

    Interest (if any) is applied to the total up front and spread evenly, so
    installment schedules never split principal and interest per period.
    """
    if count <= 0:
        raise InvalidRuleConfigurationError("Installment count must be positive")
    if has_interest and interest_rate:
        return total * (1 + interest_rate / 100) / count
    return total / count


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass
class PaymentBreakdown:
    """Principal/interest split attached to debt payments"""

    principal_paid: float
    interest_paid: float
    remaining_balance: float
    payment_number: int
    total_payments: int  # 0 when unknown (credit cards)
    negative_amortization: bool = False

    @property
    def total_paid(self) -> float:
        return self.principal_paid + self.interest_paid


@dataclass(frozen=True)
class ProjectionHandle:
    """Structured identity of a projected transaction"""

    source_id: str
    occurrence_id: Optional[str]
    scheduled_date: date

    @property
    def projection_id(self) -> str:
        parts = [self.source_id, self.scheduled_date.isoformat()]
        if self.occurrence_id:
            parts.append(self.occurrence_id)
        return PROJECTION_ID_PREFIX + PROJECTION_ID_SEPARATOR.join(parts)

    @classmethod
    def parse(cls, projection_id: str) -> "ProjectionHandle":
        """
        Parse `proj_<sourceId>::<YYYY-MM-DD>[::<occurrenceId>]`.

        Raises:
            InvalidProjectionIdError: if the id is not a projection id
        """
        if not projection_id.startswith(PROJECTION_ID_PREFIX):
            raise InvalidProjectionIdError(f"Not a projection id: {projection_id!r}")

        segments = projection_id[len(PROJECTION_ID_PREFIX):].split(PROJECTION_ID_SEPARATOR)
        if len(segments) not in (2, 3) or not segments[0]:
            raise InvalidProjectionIdError(f"Invalid projection id format: {projection_id!r}")

        try:
            scheduled_date = date.fromisoformat(segments[1])
        except ValueError as e:
            raise InvalidProjectionIdError(f"Invalid projection date in {projection_id!r}") from e

        occurrence_id = segments[2] if len(segments) == 3 else None
        if occurrence_id is not None and not occurrence_id_matches(segments[0], occurrence_id):
            raise InvalidProjectionIdError(f"Invalid occurrence id in {projection_id!r}")

        return cls(source_id=segments[0], occurrence_id=occurrence_id, scheduled_date=scheduled_date)


def is_projection_id(transaction_id: str) -> bool:
    return transaction_id.startswith(PROJECTION_ID_PREFIX)


@dataclass
class Transaction:
    """Projected (synthetic) or stored (user-recorded) transaction"""

    id: str
    name: str
    type: TransactionType
    category: str
    source_type: SourceType
    scheduled_date: date
    projected_amount: float
    status: TransactionStatus = TransactionStatus.PROJECTED
    source_id: Optional[str] = None
    occurrence_id: Optional[str] = None
    actual_amount: Optional[float] = None
    actual_date: Optional[date] = None
    notes: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdown] = None
    handle: Optional[ProjectionHandle] = None

    @property
    def effective_date(self) -> date:
        return self.actual_date or self.scheduled_date

    @property
    def effective_amount(self) -> float:
        """Actual amount for completed transactions, projected amount otherwise"""
        if self.status == TransactionStatus.COMPLETED and self.actual_amount is not None:
            return self.actual_amount
        return self.projected_amount

    @property
    def is_projection(self) -> bool:
        return self.handle is not None


@dataclass
class DayBalance:
    """Derived per-day balance, always recomputed from the merged transactions"""

    date: date
    opening_balance: float
    closing_balance: float
    total_income: float
    total_expenses: float
    status: BalanceStatus
    transactions: List[Transaction] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Occurrence:
    """One firing of a rule: logical date and the weekend-adjusted date it lands on"""

    nominal_date: date
    scheduled_date: date


@dataclass
class AmortizationStep:
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    negative_amortization: bool = False


@dataclass
class MonthlyBreakdown:
    month: int
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    cumulative_interest: float
    cumulative_principal: float
    negative_amortization: bool = False


@dataclass
class PayoffScenario:
    name: str
    monthly_payment: float
    months_to_payoff: int
    total_interest: float
    total_amount: float
    interest_savings: float
    time_savings_months: int


@dataclass
class CreditCardPayoffSummary:
    payoff_date: Optional[date]  # None if never (minimum payment trap)
    months_to_payoff: float  # math.inf if never
    total_amount_to_pay: float
    total_interest_to_pay: float
    current_monthly_interest: float
    effective_monthly_payment: float
    principal_paid_so_far: float
    interest_paid_so_far: float
    scenarios: List[PayoffScenario]
    is_minimum_payment_trap: bool
    years_to_payoff: float
    schedule: List[MonthlyBreakdown] = field(default_factory=list)


@dataclass
class ScheduledInstallment:
    """Single payment in an installment plan"""

    due_date: date
    amount: float
    payment_number: int
    total_payments: int
    remaining_balance: float
