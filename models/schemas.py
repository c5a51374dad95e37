"""Pydantic schemas for exported payloads and analytics reports."""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# Column export schemas
class DrawRow(BaseModel):
    """One draw as written by the column export."""
    model_config = ConfigDict(populate_by_name=True)

    draw_date: date = Field(..., alias="date")
    digits: str = Field(..., min_length=1, description="Straight digits, e.g. '123'")
    session: str = ""

    @field_validator('digits')
    @classmethod
    def validate_digits(cls, v):
        """Digits must be numeric characters only."""
        if not v.isdigit():
            raise ValueError(f'Digits must be numeric: {v!r}')
        return v


class ColumnExportPayload(BaseModel):
    """Top-level structure of a column export document."""
    version: str
    width: int = Field(..., ge=1)
    draws: List[Any]


# Cache persistence schemas
class CacheExportEntry(BaseModel):
    """One cache entry in the persistence format."""
    key: str = Field(..., min_length=1)
    result: Any
    timestamp: float = Field(..., allow_inf_nan=False)
    accessCount: int = Field(0, ge=0)
    lastAccessed: Optional[float] = Field(None, allow_inf_nan=False)


class CacheExportMetadata(BaseModel):
    """Metadata block of the cache persistence format."""
    exportedAt: str
    version: str
    ttl: float
    maxSize: int


# Analytics report variants
class TrendEntry(BaseModel):
    position: int
    trend: str
    confidence: float
    slope: float
    r_squared: float
    period: Optional[int] = None


class CorrelationEntry(BaseModel):
    position_a: int
    position_b: int
    coefficient: float
    significance: float
    sample_size: int
    strength: str
    series: str


class AccuracyEntry(BaseModel):
    position: int
    total_predictions: int
    correct_predictions: int
    accuracy: float
    recent_accuracy: float
    trend: str
    has_data: bool


class OverdueDigit(BaseModel):
    position: int
    digit: int
    current_skip: int
    max_gap: int
    average_gap: float


class PerformanceReport(BaseModel):
    """Engine bookkeeping: history size and cache effectiveness."""
    kind: Literal['performance'] = 'performance'
    generated_at: datetime
    total_draws: int
    history_version: int
    cache_size: int
    cache_hit_rate: float
    cache_total_accesses: int


class TrendsReport(BaseModel):
    kind: Literal['trends'] = 'trends'
    generated_at: datetime
    column_trends: List[TrendEntry]
    trending_up: Dict[int, List[int]]
    trending_down: Dict[int, List[int]]


class PatternsReport(BaseModel):
    kind: Literal['patterns'] = 'patterns'
    generated_at: datetime
    draw_patterns: Dict[str, Dict[str, int]]


class AccuracyReport(BaseModel):
    kind: Literal['accuracy'] = 'accuracy'
    generated_at: datetime
    overall_accuracy: float
    positions: List[AccuracyEntry]


class CorrelationsReport(BaseModel):
    kind: Literal['correlations'] = 'correlations'
    generated_at: datetime
    series: str
    correlations: List[CorrelationEntry]


class RiskReport(BaseModel):
    """Gap volatility per position and digits past their longest gap."""
    kind: Literal['risk'] = 'risk'
    generated_at: datetime
    gap_volatility: Dict[int, float]
    overdue: List[OverdueDigit]


AnalyticsReport = Annotated[
    Union[
        PerformanceReport,
        TrendsReport,
        PatternsReport,
        AccuracyReport,
        CorrelationsReport,
        RiskReport
    ],
    Field(discriminator='kind')
]

analytics_report_adapter = TypeAdapter(AnalyticsReport)

REPORT_KINDS = ('performance', 'trends', 'patterns', 'accuracy', 'correlations', 'risk')
