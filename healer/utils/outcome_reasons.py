"""
Outcome Reasons
===============
Standardised constants describing why a strategy run ended the way it did.

Used by StrategyResult.outcome_reason to give the orchestrator, the report
and the console summary clean, machine-readable outcomes.
"""


# ---------------------------------------------------------------------------
# Outcome Reason Constants
# ---------------------------------------------------------------------------
IMPROVED = "IMPROVED"
NO_IMPROVEMENT = "NO_IMPROVEMENT"
NO_CHANGES = "NO_CHANGES"
REGRESSION = "REGRESSION"
STRATEGY_EXCEPTION = "STRATEGY_EXCEPTION"
STRATEGY_TIMEOUT = "STRATEGY_TIMEOUT"
CATEGORY_EMPTY = "CATEGORY_EMPTY"
DRY_RUN = "DRY_RUN"


# Reasons that leave the working tree reset to the checkpoint
ROLLBACK_REASONS = frozenset({
    REGRESSION,
    STRATEGY_EXCEPTION,
    STRATEGY_TIMEOUT,
})


def is_rollback_reason(reason: str) -> bool:
    """
    Return True when the outcome implies the tree was rolled back.

    Parameters
    ----------
    reason : str
        One of the outcome reason constants.

    Returns
    -------
    bool
    """
    return reason in ROLLBACK_REASONS
