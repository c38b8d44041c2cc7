"""Sick-leave adjustment of contributable income."""

from typing import Optional

from .errors import InvalidSickLeaveAssumption
from .policy import SickLeavePolicy


class SickLeaveAdjustor:
    """Reduces annual income for days paid as sick leave instead of salary."""

    def __init__(self, policy: Optional[SickLeavePolicy] = None):
        self.policy = policy or SickLeavePolicy()

    def adjust(
        self, annual_income: float, working_days: int, sick_leave_days: float
    ) -> float:
        """
        Get the contributable income after sick leave.

        Working days are paid at full salary; sick-leave days contribute the
        policy's effective share of a day's salary.

        Args:
            annual_income: Full-year gross income
            working_days: Working days in a year
            sick_leave_days: Assumed sick-leave days in the year

        Returns:
            Adjusted contributable income

        Raises:
            InvalidSickLeaveAssumption: If the days are negative or exceed the
                working days
        """
        if sick_leave_days < 0 or sick_leave_days > working_days:
            raise InvalidSickLeaveAssumption(sick_leave_days, working_days)
        if sick_leave_days == 0:
            return annual_income

        paid_days = (working_days - sick_leave_days) + (
            sick_leave_days * self.policy.effective_rate
        )
        return annual_income * paid_days / working_days
