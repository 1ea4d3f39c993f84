from typing import Dict, List, Tuple
import logging

from .models import (
    CategoryName, CATEGORY_ORDER, CategoryPreference, StrengthLabel, StrengthScore
)
from .utils import format_category_name

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECOMMENDATIONS = 5

RECOMMENDATION_TEMPLATES: Dict[CategoryName, str] = {
    CategoryName.STYLE: "Favor {tag} aesthetics",
    CategoryName.INDUSTRY: "Draw inspiration from {tag} industry designs",
    CategoryName.TYPOGRAPHY: "Use {tag} typography",
    CategoryName.TYPE: "Explore {tag} layouts",
    CategoryName.CATEGORY: "Reference {tag} sites",
    CategoryName.PLATFORM: "Consider building with {tag}",
    CategoryName.COLORS: "Build the palette around {tag}",
}

def rank_categories_by_strength(
    preferences: Dict[CategoryName, CategoryPreference],
    strength_scores: Dict[CategoryName, StrengthScore],
) -> List[CategoryName]:
    """
    Non-empty categories, strongest first

    Ordered by label tier, then top tag percentage, then category priority.
    """
    candidates = [
        category for category in CATEGORY_ORDER
        if category in preferences and preferences[category].top
    ]

    def sort_key(category: CategoryName) -> Tuple[int, int, int]:
        score = strength_scores[category]
        return (-score.label.tier, -score.score, CATEGORY_ORDER.index(category))

    return sorted(candidates, key=sort_key)

def generate_summary(
    preferences: Dict[CategoryName, CategoryPreference],
    strength_scores: Dict[CategoryName, StrengthScore],
    total_selections: int,
) -> str:
    """One to three sentences about the strongest one or two categories"""
    if total_selections == 0:
        return "No choices have been made yet, so there is no design preference profile to summarize."

    ranked = rank_categories_by_strength(preferences, strength_scores)
    if not ranked:
        return (f"Based on {total_selections} choices, no clear design preferences "
                f"have emerged yet.")

    choice_word = "choice" if total_selections == 1 else "choices"
    leader = strength_scores[ranked[0]]
    sentences = [
        f"Based on {total_selections} {choice_word}, you show a {leader.label.value} preference "
        f"for {leader.top_choice} in {format_category_name(leader.category)}."
    ]

    if len(ranked) > 1:
        runner_up = strength_scores[ranked[1]]
        sentences.append(
            f"You also lean toward {runner_up.top_choice} in "
            f"{format_category_name(runner_up.category)}."
        )

    if leader.label == StrengthLabel.WEAK:
        sentences.append("Your choices span a wide range of designs, so no single direction dominates yet.")

    return " ".join(sentences)

def generate_recommendations(
    preferences: Dict[CategoryName, CategoryPreference],
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> List[str]:
    """Actionable phrases from the top tag of each non-empty category, in priority order"""
    recommendations = []

    for category in CATEGORY_ORDER:
        preference = preferences.get(category)
        if not preference or not preference.top:
            continue
        template = RECOMMENDATION_TEMPLATES[category]
        recommendations.append(template.format(tag=preference.top[0].tag))

    return recommendations[:max(0, max_recommendations)]
