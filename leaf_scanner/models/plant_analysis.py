from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class OverallCondition(str, Enum):
    """Ordinal condition labels derived from the health score"""
    HEALTHY = "healthy"
    MILD_DAMAGE = "mild_damage"
    MODERATE_DAMAGE = "moderate_damage"
    SEVERE_DAMAGE = "severe_damage"
    CRITICAL = "critical"


class Urgency(str, Enum):
    """How quickly the grower should act"""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BlackSpotStats(BaseModel):
    """Result of the black spot pixel scan"""
    model_config = ConfigDict(frozen=True)

    has_black_spots: bool
    count: int = Field(..., ge=0, description="Density estimate, not a connected-component count")
    percentage: float = Field(..., ge=0.0, le=100.0)
    potential_spot_pixels: int = Field(
        0,
        ge=0,
        description="Dark reddish pixels; reported only, not used in scoring"
    )


class DamageStats(BaseModel):
    """Result of the damage pixel scan"""
    model_config = ConfigDict(frozen=True)

    has_damage: bool
    percentage: float = Field(..., ge=0.0, le=100.0)


class AnalysisResult(BaseModel):
    """Output of the pixel analyzer for one image"""
    model_config = ConfigDict(frozen=True)

    has_black_spots: bool
    black_spot_count: int = Field(..., ge=0)
    black_spot_percentage: float = Field(..., ge=0.0, le=100.0)
    has_damage: bool
    damage_percentage: float = Field(..., ge=0.0, le=100.0)
    health_score: int = Field(..., ge=0, le=100, description="0-100, where 100 is perfectly healthy")
    overall_condition: OverallCondition
    detected_issues: List[str] = Field(default_factory=list)
    confidence: float = Field(
        ...,
        ge=90.0,
        le=98.0,
        description="Display confidence in percent; not a statistical confidence"
    )
    image_quality: float = Field(..., ge=0.0, le=95.0)
    analysis_time: float = Field(..., ge=0.0, description="Analysis time in seconds")
    image_width: int = Field(..., gt=0, description="Width of the analyzed bitmap")
    image_height: int = Field(..., gt=0, description="Height of the analyzed bitmap")


class HealthAssessment(BaseModel):
    """User-facing health assessment derived from an AnalysisResult"""
    model_config = ConfigDict(frozen=True)

    is_healthy: bool
    condition: str
    health_percentage: int = Field(..., ge=0, le=100)
    recommendations: List[str]
    urgency: Urgency
