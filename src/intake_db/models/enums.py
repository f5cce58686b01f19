"""Database-level enumerations for intake records."""

import enum


class IntakeStatus(str, enum.Enum):
    """Lifecycle states for an intake.

    Transitions:
        not_started -> in_progress  (first answers saved)
        in_progress -> submitted    (client submits from the last step)
        submitted   -> reviewed     (firm staff sign off)

    Submitting again is an idempotent overwrite of ``submitted``.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
