"""
Signal projection - turns high-significance correlations into alert records.
"""

from worldmon.analysis.config import DEFAULT_CONFIG, CorrelationConfig
from worldmon.analysis.types import AnyCorrelation, CorrelationBundle, ThreatSignal, utc_now

# Thematic, pattern and cluster output never produces alerts.
ALERTING_FIELDS = ("temporal", "spatial", "cascades")


def correlations_to_signals(
    bundle: CorrelationBundle, config: CorrelationConfig = DEFAULT_CONFIG
) -> list[ThreatSignal]:
    """
    Project a correlation bundle into at most ``config.max_signals`` alerts.

    High-significance temporal, spatial and cascade results are taken in
    that order and truncated by position. Severity is capped at "medium"
    so correlations alone never raise a high-severity alert.
    """
    candidates: list[AnyCorrelation] = [
        result
        for field in ALERTING_FIELDS
        for result in getattr(bundle, field)
        if result.significance == "high"
    ]

    generated_at = utc_now()
    return [
        ThreatSignal(
            type=f"correlation_{result.type}",
            title=f"{result.type.upper()} Correlation Detected",
            description=result.description,
            severity="medium",
            score=result.score,
            events=list(result.events),
            timestamp=generated_at,
        )
        for result in candidates[: config.max_signals]
    ]
