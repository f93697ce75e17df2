# test/test_health.py
import pytest

from conftest import make_result
from leaf_scanner.models.plant_analysis import (
    BlackSpotStats,
    DamageStats,
    OverallCondition,
    Urgency,
)
from leaf_scanner.services.health import (
    assess_plant_health,
    calculate_health_score,
    determine_overall_condition,
    determine_urgency,
    generate_issues_list,
    health_status_emoji,
    round_half_up,
)


def spots(percentage, count=1):
    has = percentage > 0.1
    return BlackSpotStats(has_black_spots=has, count=count if has else 0, percentage=percentage)


def damage(percentage):
    return DamageStats(has_damage=percentage > 0.5, percentage=percentage)


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(98.5) == 99
    assert round_half_up(0.125, 2) == 0.13


def test_score_without_symptoms_is_100():
    assert calculate_health_score(spots(0.0), damage(0.0)) == 100


def test_score_ignores_values_below_presence_thresholds():
    assert calculate_health_score(spots(0.1), damage(0.5)) == 100


def test_score_rounds_halves_up():
    # 100 - 0.5 * 3 == 98.5
    assert calculate_health_score(spots(0.5), damage(0.0)) == 99


def test_combined_penalty_applies_above_both_thresholds():
    # 100 - 18 - 22 - 15
    assert calculate_health_score(spots(6.0), damage(11.0)) == 45


def test_combined_penalty_needs_both_symptoms():
    assert calculate_health_score(spots(6.0), damage(10.0)) == 62


def test_score_is_clamped_at_zero():
    assert calculate_health_score(spots(100.0), damage(100.0)) == 0


def test_increasing_black_spots_never_increases_score():
    for damage_percentage in (0.0, 5.0, 12.0, 60.0):
        previous = 100
        for step in range(0, 201):
            score = calculate_health_score(spots(step / 2), damage(damage_percentage))
            assert 0 <= score <= 100
            assert score <= previous, f"score rose at {step / 2}% spots with {damage_percentage}% damage"
            previous = score


@pytest.mark.parametrize(
    "score,has_spots,has_damage,expected",
    [
        (100, False, False, OverallCondition.HEALTHY),
        (85, False, False, OverallCondition.HEALTHY),
        (95, True, False, OverallCondition.MILD_DAMAGE),
        (90, False, True, OverallCondition.MILD_DAMAGE),
        (84, False, False, OverallCondition.MILD_DAMAGE),
        (70, True, True, OverallCondition.MILD_DAMAGE),
        (69, True, True, OverallCondition.MODERATE_DAMAGE),
        (50, True, True, OverallCondition.MODERATE_DAMAGE),
        (49, True, True, OverallCondition.SEVERE_DAMAGE),
        (30, True, True, OverallCondition.SEVERE_DAMAGE),
        (29, True, True, OverallCondition.CRITICAL),
        (0, True, True, OverallCondition.CRITICAL),
    ],
)
def test_condition_ladder(score, has_spots, has_damage, expected):
    assert determine_overall_condition(score, has_spots, has_damage) == expected


@pytest.mark.parametrize(
    "score,has_spots,has_damage,bsp,dp,expected",
    [
        (100, False, False, 0.0, 0.0, Urgency.NONE),
        (90, True, False, 3.0, 0.0, Urgency.LOW),
        (76, False, True, 0.0, 12.0, Urgency.LOW),
        (72, True, False, 6.0, 0.0, Urgency.MEDIUM),
        (60, True, False, 100.0, 0.0, Urgency.MEDIUM),
        (55, True, True, 20.0, 25.0, Urgency.HIGH),
        (30, True, True, 29.0, 50.0, Urgency.HIGH),
        (40, True, True, 35.0, 45.0, Urgency.CRITICAL),
        (20, True, True, 1.0, 1.0, Urgency.CRITICAL),
    ],
)
def test_urgency_ladder(score, has_spots, has_damage, bsp, dp, expected):
    urgency, _ = determine_urgency(score, has_spots, has_damage, bsp, dp)
    assert urgency == expected


def test_condition_and_urgency_disagree_near_boundaries():
    result = make_result(
        has_black_spots=True,
        black_spot_count=12,
        black_spot_percentage=6.0,
        health_score=72,
        overall_condition=OverallCondition.MILD_DAMAGE,
    )

    assert determine_overall_condition(72, True, False) == OverallCondition.MILD_DAMAGE
    assert assess_plant_health(result).urgency == Urgency.MEDIUM


def test_assessment_for_healthy_plant():
    assessment = assess_plant_health(make_result())

    assert assessment.is_healthy is True
    assert assessment.urgency == Urgency.NONE
    assert assessment.health_percentage == 100
    assert assessment.condition == "Excellent Health - No Issues Detected"
    assert len(assessment.recommendations) == 4


def test_low_urgency_still_counts_as_healthy():
    result = make_result(has_damage=True, damage_percentage=12.0, health_score=76,
                         overall_condition=OverallCondition.MILD_DAMAGE)
    assessment = assess_plant_health(result)

    assert assessment.urgency == Urgency.LOW
    assert assessment.is_healthy is True


def test_assessment_is_idempotent():
    result = make_result(has_black_spots=True, black_spot_count=40, black_spot_percentage=8.0,
                         has_damage=True, damage_percentage=15.0, health_score=31,
                         overall_condition=OverallCondition.SEVERE_DAMAGE)

    assert assess_plant_health(result) == assess_plant_health(result)
    assert calculate_health_score(spots(8.0), damage(15.0)) == calculate_health_score(spots(8.0), damage(15.0))


def test_issue_list_mentions_stress_below_50():
    issues = generate_issues_list(spots(12.0, count=30), damage(25.0), health_score=10)

    assert issues == [
        "Severe black spot infestation detected (12.0% coverage)",
        "Extensive leaf damage detected (25.0% affected)",
        "Plant showing signs of severe stress",
    ]


def test_issue_list_minor_damage():
    issues = generate_issues_list(spots(0.0), damage(2.0), health_score=96)

    assert issues == ["Minor leaf damage observed (2.0% affected)"]


@pytest.mark.parametrize("score,emoji", [(90, "🟢"), (70, "🟡"), (55, "🟠"), (30, "🔴"), (5, "⚫")])
def test_health_status_emoji(score, emoji):
    assert health_status_emoji(score) == emoji
