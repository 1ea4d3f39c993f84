import logging
from typing import Dict, Mapping, Tuple

from pydantic import BaseModel, Field, model_validator

from .models import (
    CategoryName, CATEGORY_ORDER, CategoryPreference, StrengthLabel,
    StrengthScore, TagCount
)
from .utils import calculate_percentage, format_category_name

logger = logging.getLogger(__name__)

DEFAULT_STRONG_THRESHOLD = 50
DEFAULT_MODERATE_THRESHOLD = 30

class StrengthPolicy(BaseModel):
    """Top tag percentage needed for each strength label"""
    strong_threshold: int = Field(DEFAULT_STRONG_THRESHOLD, ge=0, le=100)
    moderate_threshold: int = Field(DEFAULT_MODERATE_THRESHOLD, ge=0, le=100)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_order(self) -> "StrengthPolicy":
        if self.moderate_threshold > self.strong_threshold:
            raise ValueError(
                f"moderate_threshold ({self.moderate_threshold}) cannot exceed "
                f"strong_threshold ({self.strong_threshold})"
            )
        return self

    def label_for(self, percentage: int) -> StrengthLabel:
        if percentage >= self.strong_threshold:
            return StrengthLabel.STRONG
        elif percentage >= self.moderate_threshold:
            return StrengthLabel.MODERATE
        return StrengthLabel.WEAK

def rank_category(counts: Mapping[str, int], total_selections: int) -> CategoryPreference:
    """
    Rank the tags of one category by count

    Ties keep the insertion order of ``counts`` (first seen during the tally).
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    # sorted(reverse=True) keeps equal items in original order
    top = [
        TagCount(tag=tag, count=count, percentage=calculate_percentage(count, total_selections))
        for tag, count in ranked
    ]
    return CategoryPreference(
        top=top,
        total_tag_occurrences=sum(counts.values()),
        total_unique=len(counts),
    )

def score_strength(category: CategoryName, preference: CategoryPreference,
                   policy: StrengthPolicy) -> StrengthScore:
    """Strength label and description from the dominance of the top tag"""
    display_name = format_category_name(category)

    if not preference.top:
        return StrengthScore(
            category=category,
            label=StrengthLabel.WEAK,
            score=0,
            description=f"No clear preference in {display_name}",
        )

    top_item = preference.top[0]
    label = policy.label_for(top_item.percentage)
    return StrengthScore(
        category=category,
        label=label,
        score=top_item.percentage,
        top_choice=top_item.tag,
        description=f"You show a {label.value} preference for {top_item.tag} in {display_name}",
    )

def score_preferences(
    tag_counts: Mapping[CategoryName, Mapping[str, int]],
    total_selections: int,
    policy: StrengthPolicy,
) -> Tuple[Dict[CategoryName, CategoryPreference], Dict[CategoryName, StrengthScore]]:
    """Ranked preferences and strength scores for every category"""
    preferences: Dict[CategoryName, CategoryPreference] = {}
    strength_scores: Dict[CategoryName, StrengthScore] = {}

    for category in CATEGORY_ORDER:
        preference = rank_category(tag_counts.get(category, {}), total_selections)
        preferences[category] = preference
        strength_scores[category] = score_strength(category, preference, policy)

    return preferences, strength_scores
