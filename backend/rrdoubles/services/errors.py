"""
Scheduling error taxonomy.

Every failure raised by the engine is recoverable at the API boundary:
routes map each class onto an HTTP status and nothing in the tournament
context is mutated before validation passes.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling failures"""

    code = "SCHEDULING_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class InputValidationError(SchedulingError):
    """Bad roster, config, quick-add text or lock input; rejected before scheduling"""

    code = "INPUT_INVALID"


class LockConflictError(SchedulingError):
    """Locked matchups or byes contradict each other"""

    code = "LOCK_CONFLICT"


class ScheduleInfeasibleError(SchedulingError):
    """Solver could not place every matchup under the given locks and byes"""

    code = "NO_VALID_SCHEDULE"

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message, code="SEARCH_BUDGET_EXHAUSTED" if timed_out else None)
        self.timed_out = timed_out


class ReassignmentConflictError(SchedulingError):
    """A round or bye pin collides with an existing pin"""

    code = "REASSIGNMENT_CONFLICT"


class NotFoundError(SchedulingError):
    """Referenced team, player, match or round does not exist"""

    code = "NOT_FOUND"
