import re
from typing import Dict, Union
import logging

from .models import CategoryName

logger = logging.getLogger(__name__)

CATEGORY_DISPLAY_NAMES: Dict[CategoryName, str] = {
    CategoryName.STYLE: "Visual Style",
    CategoryName.INDUSTRY: "Industry Focus",
    CategoryName.TYPOGRAPHY: "Typography",
    CategoryName.TYPE: "Project Type",
    CategoryName.CATEGORY: "Site Category",
    CategoryName.PLATFORM: "Technology Platform",
    CategoryName.COLORS: "Color Preferences",
}

def calculate_percentage(count: int, total: int) -> int:
    """
    Share of total as a whole percentage, rounded half up

    Args:
        count: Number of occurrences
        total: Number of selections

    Returns:
        Integer percentage, 0 when total is 0
    """
    if total <= 0:
        return 0
    # Integer arithmetic keeps x.5 cases exact
    return (200 * count + total) // (2 * total)

def format_category_name(category: Union[CategoryName, str]) -> str:
    """Human readable category name"""
    try:
        return CATEGORY_DISPLAY_NAMES[CategoryName(category)]
    except ValueError:
        name = str(category)
        return name[:1].upper() + name[1:]

def format_tag_for_display(tag: str) -> str:
    """Upper-case hex colors, title-case words"""
    if tag.startswith("#"):
        return tag.upper()

    words = [word for word in re.split(r"[\s&]+", tag) if word]
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)
