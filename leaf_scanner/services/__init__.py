# leaf_scanner/services/__init__.py
from leaf_scanner.services.analyzer import PlantImageAnalyzer
from leaf_scanner.services.scanner import DiseaseScanner
