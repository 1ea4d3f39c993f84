from typing import Dict
import logging

from .models import (
    CategoryName, CATEGORY_ORDER, CategoryDiversity, CategoryPreference,
    ConsistencyInsight, ProfileInsights, StrengthScore, StrongestCategory
)
from .utils import format_category_name

logger = logging.getLogger(__name__)

CONSISTENCY_THRESHOLD = 40

def variety_level(unique_choices: int) -> str:
    if unique_choices > 5:
        return "high"
    elif unique_choices > 2:
        return "medium"
    return "low"

def find_strongest_category(strength_scores: Dict[CategoryName, StrengthScore]) -> StrongestCategory:
    """Category with the highest top tag percentage, earliest category on ties"""
    strongest = StrongestCategory()
    for category in CATEGORY_ORDER:
        score = strength_scores.get(category)
        if score and score.score > strongest.score:
            strongest = StrongestCategory(
                category=category,
                score=score.score,
                label=score.label,
                top_choice=score.top_choice,
            )
    return strongest

def generate_insights(
    preferences: Dict[CategoryName, CategoryPreference],
    strength_scores: Dict[CategoryName, StrengthScore],
) -> ProfileInsights:
    """Diversity and consistency patterns across categories"""
    diversity = {}
    for category in CATEGORY_ORDER:
        preference = preferences.get(category, CategoryPreference())
        dominance = preference.top[0].percentage if preference.top else 0
        diversity[category] = CategoryDiversity(
            unique_choices=preference.total_unique,
            dominance=dominance,
            variety=variety_level(preference.total_unique),
        )

    strong_categories = [
        category for category in CATEGORY_ORDER
        if diversity[category].dominance >= CONSISTENCY_THRESHOLD
    ]
    if len(strong_categories) >= 3:
        overall_consistency = "high"
    elif strong_categories:
        overall_consistency = "medium"
    else:
        overall_consistency = "low"

    patterns = []
    if strong_categories:
        names = ", ".join(format_category_name(c) for c in strong_categories)
        patterns.append(f"Shows consistent preferences in {names}")
    if diversity[CategoryName.STYLE].variety == "high":
        patterns.append("Appreciates diverse visual styles")
    if diversity[CategoryName.COLORS].unique_choices > 10:
        patterns.append("Drawn to varied color palettes")

    varieties = [d.variety for d in diversity.values()]
    high_count = varieties.count("high")
    if high_count >= 3:
        overall_diversity = "high"
    elif high_count >= 1 or varieties.count("medium") >= 3:
        overall_diversity = "medium"
    else:
        overall_diversity = "low"

    return ProfileInsights(
        patterns=patterns,
        diversity=diversity,
        consistency=ConsistencyInsight(
            strong_categories=strong_categories,
            overall_consistency=overall_consistency,
        ),
        overall_diversity=overall_diversity,
        strongest_category=find_strongest_category(strength_scores),
    )
