"""Error types for session timing configuration.

Standard error codes:
- INVALID_INTERVAL_COUNT: number of intervals must be at least one
- INVALID_TARGET: a phase target must be positive
- MISSING_REST: a multi-interval session needs a rest phase
- INVALID_MILESTONE_PLAN: milestone spacing or windows must be positive
"""


class SessionConfigError(ValueError):
    """Raised when a session configuration is rejected before the session starts.

    Attributes:
        code: Error code (e.g., "INVALID_TARGET", "MISSING_REST")
        details: List of error detail strings
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")
