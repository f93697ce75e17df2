from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from leaf_scanner.models.disease import DiseaseRecord
from leaf_scanner.models.plant_analysis import AnalysisResult, HealthAssessment


class ProcessingStats(BaseModel):
    analysis_time: float = Field(..., description="Seconds spent in the pixel analyzer")
    image_quality: int = Field(..., ge=0, le=95)
    model_confidence: int = Field(..., ge=0, le=100, description="Selected disease confidence in percent")
    data_points: int = Field(..., ge=0, description="Number of analyzed pixels")


class AlternativeDiagnosis(BaseModel):
    name: str
    probability: int
    description: str


class ScanResult(BaseModel):
    """Everything the client renders after a completed scan"""
    disease: DiseaseRecord
    plant_health: int = Field(..., ge=0, le=100, description="Health score of the analyzed image")
    risk_level: str
    summary: str = Field(..., description="One-line completion notice")
    additional_info: str
    recommendations: List[str]
    real_time_accuracy: int
    processing_stats: ProcessingStats
    alternative_diagnoses: List[AlternativeDiagnosis]
    analysis: AnalysisResult
    health: HealthAssessment
    record_id: Optional[int] = Field(None, description="Id of the persisted row, if it was stored")
    warnings: List[str] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    """Analysis without disease selection or persistence"""
    analysis: AnalysisResult
    health: HealthAssessment


class RecentScan(BaseModel):
    """A persisted scan row as read back from the record store"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    crop_name: Optional[str] = None
    detected_disease: str
    confidence_score: float
    treatment_recommendations: List[str] = Field(default_factory=list)
    severity: str
    black_spots_detected: Optional[bool] = None
    damage_percentage: Optional[float] = None
    health_score: Optional[int] = None
    image_quality: Optional[float] = None
    created_at: Optional[datetime] = None


class DetectionStats(BaseModel):
    total_scans: int = 0
    accurate_detections: int = Field(0, description="Scans whose confidence exceeded 80%")
    avg_confidence: float = Field(0.0, description="Mean confidence in percent")
