"""Installment plan schedules for buy-now-pay-later style purchases"""

from datetime import date
from typing import List

from cashflow_gateway.domain.models import InstallmentConfig, ScheduledInstallment
from cashflow_gateway.utils.date_utils import add_months


def generate_installment_schedule(
    config: InstallmentConfig,
    start_date: date,
) -> List[ScheduledInstallment]:
    """
    Generate the remaining monthly payments of an installment plan.

    Requirements:
    - One payment per remaining installment, one month apart
    - First remaining payment falls installments_paid months after start_date
    - Every payment is the flat installment_amount (no principal/interest split)
    - remaining_balance = (installment_count - payment_number) * installment_amount

    Args:
        config: Installment plan configuration
        start_date: Due date of the first installment of the plan

    Returns:
        List of ScheduledInstallment objects, oldest first

    Example:
        count=4, paid=1, amount=100, start 2025-01-15 →
        #2 2025-02-15 (200 left), #3 2025-03-15 (100 left), #4 2025-04-15 (0 left)
    """
    if config.remaining_installments <= 0 or config.installment_amount <= 0:
        return []

    schedule = []
    for payment_number in range(config.installments_paid + 1, config.installment_count + 1):
        remaining = config.installment_count - payment_number
        schedule.append(
            ScheduledInstallment(
                due_date=add_months(start_date, payment_number - 1),
                amount=config.installment_amount,
                payment_number=payment_number,
                total_payments=config.installment_count,
                remaining_balance=remaining * config.installment_amount,
            )
        )

    return schedule
