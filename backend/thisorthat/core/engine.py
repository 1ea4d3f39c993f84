"""
Preference aggregation engine

Turns a selection history into a ResultsProfile. The engine owns no state:
selections and designs are passed in, a fresh profile is returned and the
inputs are left untouched.
"""
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Union
import logging

from .models import Design, ProfileMetadata, ResultsProfile, Selection
from .scoring import StrengthPolicy, score_preferences
from .summary import DEFAULT_MAX_RECOMMENDATIONS, generate_recommendations, generate_summary
from .insights import generate_insights
from .tally import tally_selections

logger = logging.getLogger(__name__)

def analyze_selections(
    selections: Optional[List[Selection]],
    designs: Optional[Union[Iterable[Design], Mapping[str, Design]]],
    completed_at: datetime,
    policy: Optional[StrengthPolicy] = None,
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> ResultsProfile:
    """
    Build a preference profile from binary choices

    Args:
        selections: Ordered selection history. An empty list gives an empty profile.
        designs: Design catalogue as a list or an id -> Design mapping
        completed_at: Timestamp recorded in the profile metadata
        policy: Strength label thresholds, defaults to StrengthPolicy()
        max_recommendations: Cap on the recommendation list

    Returns:
        ResultsProfile with every category present

    Raises:
        ValueError: If selections or designs is None
    """
    if selections is None:
        raise ValueError("selections must be a list, got None")
    if designs is None:
        raise ValueError("designs must be provided, got None")

    policy = policy or StrengthPolicy()
    total_selections = len(selections)

    tag_counts = tally_selections(selections, designs)
    preferences, strength_scores = score_preferences(tag_counts, total_selections, policy)

    summary = generate_summary(preferences, strength_scores, total_selections)
    recommendations = generate_recommendations(preferences, max_recommendations)
    insights = generate_insights(preferences, strength_scores)

    logger.debug(f"Analyzed {total_selections} selections into "
                 f"{sum(1 for p in preferences.values() if p.top)} non-empty categories")

    return ResultsProfile(
        preferences=preferences,
        strength_scores=strength_scores,
        summary=summary,
        top_recommendations=recommendations,
        insights=insights,
        metadata=ProfileMetadata(
            total_selections=total_selections,
            completed_at=completed_at,
        ),
    )
