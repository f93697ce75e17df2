"""
SQLAlchemy model for persisted disease scans.
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from leaf_scanner.db import Base


class DiseaseDetection(Base):
    """One row per completed scan; rows are never updated or deleted."""
    __tablename__ = "disease_detections"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    crop_name = Column(String(100), default="Analyzed Crop")
    detected_disease = Column(String(100), nullable=False)
    confidence_score = Column(Float, nullable=False)
    treatment_recommendations = Column(JSON, default=list)
    severity = Column(String(20), nullable=False)
    black_spots_detected = Column(Boolean)
    damage_percentage = Column(Float)
    health_score = Column(Integer)
    image_quality = Column(Float)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
