from typing import List, Optional
import logging

from .models import FavoriteDesign, ResultsProfile
from .utils import format_category_name, format_tag_for_display

logger = logging.getLogger(__name__)

TOP_TAGS_PER_CATEGORY = 3
FOOTER_LINES = [
    "Generated by This or That? - Design Preference Discovery Tool",
    "Design images courtesy of Land-book.com",
]

def render_text(profile: ResultsProfile, favorites: Optional[List[FavoriteDesign]] = None) -> str:
    """
    Plain-text export of a results profile

    Args:
        profile: Profile produced by the aggregation engine
        favorites: Optional favorite designs listed after the categories

    Returns:
        Newline terminated text document
    """
    metadata = profile.metadata
    lines = [
        "YOUR DESIGN PREFERENCE PROFILE",
        "=" * 35,
        "",
        f"Based on {metadata.total_selections} choices",
        f"Completed: {metadata.completed_at.strftime('%Y-%m-%d')}",
        "",
        "SUMMARY",
        "-" * 10,
        profile.summary,
        "",
        "DESIGN DIRECTION RECOMMENDATIONS",
        "-" * 35,
    ]
    lines.extend(f"{index}. {recommendation}"
                 for index, recommendation in enumerate(profile.top_recommendations, start=1))
    lines.extend(["", "YOUR PREFERENCES BY CATEGORY", "-" * 30, ""])

    for category in profile.non_empty_categories():
        preference = profile.preferences[category]
        lines.append(format_category_name(category).upper())
        lines.append(profile.strength_scores[category].description)
        for item in preference.top[:TOP_TAGS_PER_CATEGORY]:
            lines.append(f"  • {format_tag_for_display(item.tag)} ({item.percentage}%)")
        lines.append("")

    if favorites:
        lines.extend(["YOUR FAVORITE DESIGNS", "-" * 21])
        for favorite in favorites:
            suffix = " (hearted)" if favorite.is_hearted else ""
            lines.append(f"  • {favorite.title}: picked {favorite.selection_count} "
                         f"times{suffix}")
            if favorite.website_url:
                lines.append(f"    {favorite.website_url}")
        lines.append("")

    lines.extend(FOOTER_LINES)
    return "\n".join(lines) + "\n"
