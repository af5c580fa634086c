"""Staff payroll services."""

from staff_payroll.services.generation_service import (
    EmptyRosterError,
    GenerationResult,
    PayrollGenerationService,
)
from staff_payroll.services.persistence import (
    DuplicatePeriodError,
    PayrollGateway,
    PersistenceFailureError,
)
from staff_payroll.services.query_service import PayslipQueryService, format_period_label
from staff_payroll.services.roster import InvalidRosterDataError, RosterProvider, SqlRosterProvider
from staff_payroll.services.state_machine import (
    InvalidTransitionError,
    RecordStateMachine,
    RecordStatus,
)
from staff_payroll.services.status_service import PayrollStatusService, RecordNotFoundError

__all__ = [
    "DuplicatePeriodError",
    "EmptyRosterError",
    "GenerationResult",
    "InvalidRosterDataError",
    "InvalidTransitionError",
    "PayrollGateway",
    "PayrollGenerationService",
    "PayrollStatusService",
    "PayslipQueryService",
    "PersistenceFailureError",
    "RecordNotFoundError",
    "RecordStateMachine",
    "RecordStatus",
    "RosterProvider",
    "SqlRosterProvider",
    "format_period_label",
]
