# leaf_scanner/models/__init__.py
# Imports for easier usage
from leaf_scanner.models.plant_analysis import AnalysisResult, HealthAssessment, OverallCondition, Urgency
from leaf_scanner.models.disease import DiseaseRecord
from leaf_scanner.models.scan_result import ScanResult, RecentScan, DetectionStats
from leaf_scanner.models.scan_record import DiseaseDetection
