# leaf_scanner/services/health.py
"""
Health scoring and the two classifiers built on top of it.

The condition classifier and the urgency classifier use different threshold
ladders on the same inputs and can disagree near the boundaries (a score of
72 with 6% black spots is ``mild_damage`` but ``medium`` urgency). They are
kept as separate functions on purpose.
"""
import math
from typing import List, Tuple

from leaf_scanner.models.plant_analysis import (
    AnalysisResult,
    BlackSpotStats,
    DamageStats,
    HealthAssessment,
    OverallCondition,
    Urgency,
)

MAX_BLACK_SPOT_DEDUCTION = 40
MAX_DAMAGE_DEDUCTION = 50
COMBINED_PENALTY = 15


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a browser's Math.round: halves always go up."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def calculate_health_score(black_spots: BlackSpotStats, damage: DamageStats) -> int:
    """Weighted deductions from 100, clamped to [0, 100]."""
    health_score = 100.0

    if black_spots.has_black_spots:
        health_score -= min(black_spots.percentage * 3, MAX_BLACK_SPOT_DEDUCTION)

    if damage.has_damage:
        health_score -= min(damage.percentage * 2, MAX_DAMAGE_DEDUCTION)

    # Both symptoms at once compound
    if black_spots.percentage > 5 and damage.percentage > 10:
        health_score -= COMBINED_PENALTY

    return int(min(100, max(0, round_half_up(health_score))))


def determine_overall_condition(health_score: int, has_black_spots: bool, has_damage: bool) -> OverallCondition:
    if health_score >= 85 and not has_black_spots and not has_damage:
        return OverallCondition.HEALTHY
    elif health_score >= 70:
        return OverallCondition.MILD_DAMAGE
    elif health_score >= 50:
        return OverallCondition.MODERATE_DAMAGE
    elif health_score >= 30:
        return OverallCondition.SEVERE_DAMAGE
    else:
        return OverallCondition.CRITICAL


# Condition text and recommendations per urgency tier
URGENCY_TIERS = {
    Urgency.NONE: (
        "Excellent Health - No Issues Detected",
        [
            "✅ Plant appears perfectly healthy",
            "✅ Continue current care routine",
            "✅ Monitor regularly for early detection",
            "✅ Maintain proper nutrition and watering",
        ],
    ),
    Urgency.LOW: (
        "Good Health - Minor Issues",
        [
            "🟡 Plant is mostly healthy with minor stress signs",
            "🟡 Increase monitoring frequency",
            "🟡 Check watering and nutrition levels",
            "🟡 Ensure proper air circulation",
        ],
    ),
    Urgency.MEDIUM: (
        "Moderate Issues - Action Needed",
        [
            "🟠 Disease symptoms detected - treat promptly",
            "🟠 Remove affected leaves if possible",
            "🟠 Apply appropriate fungicide",
            "🟠 Improve growing conditions",
        ],
    ),
    Urgency.HIGH: (
        "Severe Disease - Immediate Action Required",
        [
            "🔴 Severe disease detected - treat immediately",
            "🔴 Isolate plant from healthy ones",
            "🔴 Apply systemic treatment",
            "🔴 Consider professional consultation",
        ],
    ),
    Urgency.CRITICAL: (
        "Critical Condition - Emergency Treatment",
        [
            "🚨 Plant in critical condition",
            "🚨 Emergency treatment required",
            "🚨 May need complete removal",
            "🚨 Consult agricultural expert immediately",
        ],
    ),
}


def determine_urgency(
    health_score: int,
    has_black_spots: bool,
    has_damage: bool,
    black_spot_percentage: float,
    damage_percentage: float,
) -> Tuple[Urgency, bool]:
    """Return the urgency tier and whether the plant counts as healthy."""
    if health_score >= 85 and not has_black_spots and not has_damage:
        return Urgency.NONE, True
    elif health_score >= 70 and (not has_black_spots or black_spot_percentage < 5):
        return Urgency.LOW, True
    elif health_score >= 50 and (black_spot_percentage < 15 or damage_percentage < 20):
        return Urgency.MEDIUM, False
    elif health_score >= 30 and (black_spot_percentage < 30 or damage_percentage < 40):
        return Urgency.HIGH, False
    else:
        return Urgency.CRITICAL, False


def assess_plant_health(result: AnalysisResult) -> HealthAssessment:
    urgency, is_healthy = determine_urgency(
        result.health_score,
        result.has_black_spots,
        result.has_damage,
        result.black_spot_percentage,
        result.damage_percentage,
    )
    condition, recommendations = URGENCY_TIERS[urgency]
    return HealthAssessment(
        is_healthy=is_healthy,
        condition=condition,
        health_percentage=result.health_score,
        recommendations=list(recommendations),
        urgency=urgency,
    )


def generate_issues_list(black_spots: BlackSpotStats, damage: DamageStats, health_score: int) -> List[str]:
    issues = []

    if black_spots.has_black_spots:
        if black_spots.percentage > 10:
            issues.append(f"Severe black spot infestation detected ({black_spots.percentage:.1f}% coverage)")
        elif black_spots.percentage > 3:
            issues.append(f"Moderate black spot presence ({black_spots.percentage:.1f}% coverage)")
        else:
            issues.append(f"Minor black spots detected ({black_spots.count} spots identified)")

    if damage.has_damage:
        if damage.percentage > 20:
            issues.append(f"Extensive leaf damage detected ({damage.percentage:.1f}% affected)")
        elif damage.percentage > 10:
            issues.append(f"Moderate leaf damage ({damage.percentage:.1f}% affected)")
        else:
            issues.append(f"Minor leaf damage observed ({damage.percentage:.1f}% affected)")

    if health_score < 50:
        issues.append("Plant showing signs of severe stress")

    if not issues:
        issues.append("No significant issues detected - plant appears healthy")

    return issues


def health_status_emoji(health_score: int) -> str:
    if health_score >= 85:
        return "🟢"
    if health_score >= 70:
        return "🟡"
    if health_score >= 50:
        return "🟠"
    if health_score >= 30:
        return "🔴"
    return "⚫"
