"""
Errors
======
Exception hierarchy for the healing pipeline.

Recoverable:
    TransientToolFailure  — type checker timed out or is unavailable;
                            retried, then the last known count is used.
    StrategyError         — a fix strategy failed or overran its budget;
                            caught by the controller and rolled back.

Fatal:
    VersionControlError   — git itself is broken; the run cannot promise
                            rollback safety and must stop.
"""


class HealerError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(HealerError):
    """Invalid or unreadable configuration."""


class TransientToolFailure(HealerError):
    """The type checker could not produce output this time."""


class TypeCheckTimeout(TransientToolFailure):
    """Every type-check attempt exceeded its timeout."""


class TypeCheckerUnavailable(TransientToolFailure):
    """The type-check command could not be started."""


class StrategyError(HealerError):
    """A fix strategy failed while rewriting files."""


class StrategyTimeoutError(StrategyError):
    """A fix strategy exceeded its per-run time budget."""


class VersionControlError(HealerError):
    """A git operation failed. Always fatal."""


class ReportFinalizedError(HealerError):
    """Attempt to modify a report after it was finalized."""
