from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from leaf_scanner.models.plant_analysis import Urgency


class DiseaseRecord(BaseModel):
    """One entry of the static disease catalogue"""
    model_config = ConfigDict(frozen=True)

    name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    severity: str
    treatments: List[str]
    prevention: List[str]
    description: str
    cause: str
    spreads: str
    weather_conditions: str
    accuracy: Optional[float] = Field(None, ge=0.0, le=1.0)
    detection_time: Optional[float] = Field(None, ge=0.0)
    crop_type: Optional[str] = None
    affected_area: Optional[str] = None
    urgency: Optional[Urgency] = None
    economic_impact: Optional[str] = None
    treatment_cost: Optional[str] = None
    recovery_time: Optional[str] = None
