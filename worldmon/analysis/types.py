"""
Analysis input and result types using Pydantic models.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

Significance = Literal["high", "medium", "low"]
CorrelationType = Literal["temporal", "spatial", "thematic", "cascade"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    """A timestamped, optionally geolocated news/intelligence item."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "date"))
    latitude: float | None = Field(
        default=None,
        ge=-90,
        le=90,
        allow_inf_nan=False,
        validation_alias=AliasChoices("latitude", "lat"),
    )
    longitude: float | None = Field(
        default=None,
        ge=-180,
        le=180,
        allow_inf_nan=False,
        validation_alias=AliasChoices("longitude", "lon"),
    )
    region: str
    category: str
    source: str = ""
    keywords: tuple[str, ...] = ()

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("keywords")
    @classmethod
    def _dedupe_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))

    @property
    def has_coordinates(self) -> bool:
        # 0.0 is a real coordinate (equator / prime meridian)
        return self.latitude is not None and self.longitude is not None


class CorrelationResult(BaseModel):
    """Common scored shape shared by every correlation variant."""

    id: str
    type: CorrelationType
    score: int = Field(ge=0, le=100)
    events: list[str]
    description: str
    significance: Significance
    timestamp: datetime = Field(default_factory=utc_now)


class TemporalCorrelation(CorrelationResult):
    """Two events close in time that share keywords."""

    type: Literal["temporal"] = "temporal"
    hours_apart: float
    shared_keywords: list[str] = Field(default_factory=list)


class SpatialCorrelation(CorrelationResult):
    """Two geolocated events close on the ground."""

    type: Literal["spatial"] = "spatial"
    distance_km: float


class ThematicCorrelation(CorrelationResult):
    """A keyword connecting three or more events."""

    type: Literal["thematic"] = "thematic"
    keyword: str
    span_days: float


class CascadeCorrelation(CorrelationResult):
    """An earlier event that plausibly set up a later one."""

    type: Literal["cascade"] = "cascade"
    hours_later: float
    same_region: bool
    shared_keywords: list[str] = Field(default_factory=list)


AnyCorrelation = Annotated[
    Union[
        TemporalCorrelation,
        SpatialCorrelation,
        ThematicCorrelation,
        CascadeCorrelation,
    ],
    Field(discriminator="type"),
]


class TemporalPattern(BaseModel):
    """Recurring-interval sequence of similar events."""

    signature: str
    pattern: str
    frequency: float  # average interval, hours
    confidence: int = Field(ge=0, le=100)
    recent_hits: list[datetime] = Field(default_factory=list)


class DateRange(BaseModel):
    start: datetime
    end: datetime


class GeographicCluster(BaseModel):
    """Events grouped around a seed event's coordinates."""

    center_lat: float
    center_lon: float
    radius_km: float
    event_count: int
    categories: list[str]
    date_range: DateRange
    events: list[str] = Field(default_factory=list)


class CorrelationSummary(BaseModel):
    """Summary of a correlation run."""

    total_results: int
    status: str
    counts: dict[str, int] = Field(default_factory=dict)
    top_correlations: list[str] = Field(default_factory=list)
    top_clusters: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class CorrelationBundle(BaseModel):
    """Complete correlation analysis results."""

    temporal: list[TemporalCorrelation] = Field(default_factory=list)
    spatial: list[SpatialCorrelation] = Field(default_factory=list)
    thematic: list[ThematicCorrelation] = Field(default_factory=list)
    cascades: list[CascadeCorrelation] = Field(default_factory=list)
    patterns: list[TemporalPattern] = Field(default_factory=list)
    clusters: list[GeographicCluster] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "temporal": len(self.temporal),
            "spatial": len(self.spatial),
            "thematic": len(self.thematic),
            "cascades": len(self.cascades),
            "patterns": len(self.patterns),
            "clusters": len(self.clusters),
        }

    @property
    def total_results(self) -> int:
        return sum(self.counts.values())

    @property
    def status(self) -> str:
        if self.total_results == 0:
            return "MONITORING"
        return f"{self.total_results} CORRELATIONS"

    def correlations(self) -> list[AnyCorrelation]:
        """All pairwise/thematic results, highest score first."""
        merged: list[AnyCorrelation] = [
            *self.temporal,
            *self.spatial,
            *self.thematic,
            *self.cascades,
        ]
        return sorted(merged, key=lambda r: r.score, reverse=True)

    def summary(self, top: int = 3) -> CorrelationSummary:
        return CorrelationSummary(
            total_results=self.total_results,
            status=self.status,
            counts=self.counts,
            top_correlations=[r.description for r in self.correlations()[:top]],
            top_clusters=[
                f"{c.event_count} events near "
                f"({c.center_lat:.2f}, {c.center_lon:.2f})"
                for c in self.clusters[:top]
            ],
        )


class ThreatSignal(BaseModel):
    """Alert record handed to the notification layer."""

    type: str
    title: str
    description: str
    severity: Significance
    score: int
    events: list[str]
    region: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
