# leaf_scanner/services/diseases.py
"""
Static disease catalogue and the rule table that picks one entry per scan.

Both the catalogue and the ordered rules are read from ``data/diseases.json``;
this module only knows how to evaluate the named predicates. Replacing the
rule table with a real classifier does not change the scan pipeline.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional

from leaf_scanner.models.disease import DiseaseRecord
from leaf_scanner.models.plant_analysis import AnalysisResult

logger = logging.getLogger(__name__)

CATALOGUE_PATH = Path(__file__).resolve().parent.parent / "data" / "diseases.json"
HEALTHY_KEY = "healthy"

PREDICATES: Dict[str, Callable[[AnalysisResult], bool]] = {
    "black_spots_over_2_percent": lambda r: r.has_black_spots and r.black_spot_percentage > 2,
    "damage_over_10_percent": lambda r: r.has_damage and r.damage_percentage > 10,
    "health_below_60": lambda r: r.health_score < 60,
    "health_at_least_85": lambda r: r.health_score >= 85,
    "always": lambda r: True,
}


class SelectionRule(NamedTuple):
    when: str
    disease: str
    # None keeps the catalogue confidence unchanged
    confidence_cap: Optional[float]


class DiseaseCatalogue:
    """Immutable view of the disease table plus its selection rules."""

    def __init__(self, diseases: Dict[str, DiseaseRecord], healthy: DiseaseRecord, rules: List[SelectionRule]):
        unknown = [rule.when for rule in rules if rule.when not in PREDICATES]
        if unknown:
            raise ValueError(f"Unknown selection predicates: {', '.join(unknown)}")
        missing = [rule.disease for rule in rules if rule.disease != HEALTHY_KEY and rule.disease not in diseases]
        if missing:
            raise ValueError(f"Selection rules reference unknown diseases: {', '.join(missing)}")
        if not rules or rules[-1].when != "always":
            raise ValueError("The last selection rule must be the 'always' fallback")

        self._diseases = dict(diseases)
        self._healthy = healthy
        self._rules = tuple(rules)

    @classmethod
    def from_file(cls, path: Path = CATALOGUE_PATH) -> "DiseaseCatalogue":
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        diseases = {key: DiseaseRecord(**entry) for key, entry in raw["diseases"].items()}
        healthy = DiseaseRecord(**raw[HEALTHY_KEY])
        rules = [
            SelectionRule(rule["when"], rule["disease"], rule.get("confidence_cap"))
            for rule in raw["rules"]
        ]
        logger.info(f"Loaded {len(diseases)} diseases and {len(rules)} selection rules from {path}")
        return cls(diseases, healthy, rules)

    @property
    def diseases(self) -> List[DiseaseRecord]:
        return list(self._diseases.values())

    @property
    def healthy(self) -> DiseaseRecord:
        return self._healthy

    def get(self, key: str) -> DiseaseRecord:
        if key == HEALTHY_KEY:
            return self._healthy
        return self._diseases[key]

    def select(self, result: AnalysisResult) -> DiseaseRecord:
        """Return the first matching entry with its confidence overridden."""
        for rule in self._rules:
            if not PREDICATES[rule.when](result):
                continue
            if rule.disease == HEALTHY_KEY:
                return self._healthy.model_copy(update={"detection_time": result.analysis_time})
            record = self._diseases[rule.disease]
            if rule.confidence_cap is None:
                return record
            confidence = min(rule.confidence_cap, result.confidence / 100)
            return record.model_copy(update={"confidence": confidence})
        # Unreachable while the last rule is "always"
        raise LookupError("No selection rule matched")


@lru_cache()
def get_catalogue() -> DiseaseCatalogue:
    """Return the bundled catalogue, loaded once per process"""
    return DiseaseCatalogue.from_file()
