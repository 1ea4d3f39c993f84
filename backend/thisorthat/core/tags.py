"""
Tag normalization and categorization.

Raw tags scraped from design galleries are noisy: stray delimiters, tab-joined
fragments, overlong captions and duplicates. Every tag list entering a
``Design`` passes through this module. Flat tag lists are sorted into the
fixed categories by an ordered rule table where the first matching rule wins
and unmatched tags fall back to ``style``.
"""
import re
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional
from pydantic import BaseModel

from .models import CategoryName, CATEGORY_ORDER

logger = logging.getLogger(__name__)

TAG_RULES_VERSION = "1"
MAX_TAG_LENGTH = 50
MAX_TAGS_PER_CATEGORY = 6
DEFAULT_CATEGORY = CategoryName.STYLE

_DELIMITER_ONLY = re.compile(r"^[\s,;|/\-]+$")

class TagRule(BaseModel):
    """Keyword pattern that assigns a tag to a category"""
    name: str
    pattern: str
    category: CategoryName

    class Config:
        frozen = True

    def matches(self, tag: str) -> bool:
        return _compile(self.pattern).search(tag.lower()) is not None

@lru_cache(maxsize=None)
def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern)

# Evaluated top to bottom; order matters ("ecommerce" is an industry, not a type)
CATEGORIZATION_RULES: List[TagRule] = [
    TagRule(
        name="style-keywords",
        pattern=r"\b(background|gradient|parallax|animation|3d|cards|big footer|pastel|colors|people|video)\b",
        category=CategoryName.STYLE,
    ),
    TagRule(
        name="typography-keywords",
        pattern=r"\b(sans serif|serif|typography|font)\b",
        category=CategoryName.TYPOGRAPHY,
    ),
    TagRule(
        name="industry-keywords",
        pattern=r"\b(health|fitness|medical|tech|business|education|ecommerce|food|drinks)\b",
        category=CategoryName.INDUSTRY,
    ),
    TagRule(
        name="platform-keywords",
        pattern=r"\b(webflow|wordpress|react|vue|angular|javascript)\b",
        category=CategoryName.PLATFORM,
    ),
    TagRule(
        name="type-keywords",
        pattern=r"\b(landing|template|portfolio|ecommerce|other|pro)\b",
        category=CategoryName.TYPE,
    ),
]

def normalize_tag(raw: Any) -> Optional[str]:
    """
    Clean a single raw tag

    Returns:
        The stripped tag, or None when it is not a usable tag
    """
    if not isinstance(raw, str):
        return None

    if "\t" in raw:
        return None

    tag = raw.strip()
    if not tag or _DELIMITER_ONLY.match(tag):
        return None

    if len(tag) >= MAX_TAG_LENGTH:
        return None

    return tag

def dedupe_tags(tags: Iterable[str]) -> List[str]:
    """Remove exact duplicates, keeping first occurrences in order"""
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result

def clean_tag_list(raw_tags: Any) -> List[str]:
    """Normalize and de-duplicate a list of raw tags"""
    if raw_tags is None:
        return []

    if not isinstance(raw_tags, (list, tuple)):
        logger.warning(f"Ignoring non-list tag data of type {type(raw_tags).__name__}")
        return []

    normalized = (normalize_tag(tag) for tag in raw_tags)
    return dedupe_tags(tag for tag in normalized if tag is not None)

def categorize_tag(tag: str, rules: Optional[List[TagRule]] = None) -> CategoryName:
    """Return the category of the first rule matching the tag"""
    for rule in CATEGORIZATION_RULES if rules is None else rules:
        if rule.matches(tag):
            return rule.category
    return DEFAULT_CATEGORY

def empty_tag_map() -> Dict[CategoryName, List[str]]:
    return {category: [] for category in CATEGORY_ORDER}

def categorize_tags(raw_tags: Any, colors: Any = None,
                    rules: Optional[List[TagRule]] = None) -> Dict[CategoryName, List[str]]:
    """
    Sort a flat tag list into categories

    Args:
        raw_tags: Uncategorized tag strings
        colors: Hex colors of the design, used as the colors category
        rules: Rule table to use instead of CATEGORIZATION_RULES

    Returns:
        Mapping of every category to at most MAX_TAGS_PER_CATEGORY tags
    """
    categorized = empty_tag_map()

    for tag in clean_tag_list(raw_tags):
        category = categorize_tag(tag, rules)
        if category == CategoryName.COLORS:
            continue
        categorized[category].append(tag)

    categorized[CategoryName.COLORS] = clean_tag_list(colors)

    return {
        category: tags[:MAX_TAGS_PER_CATEGORY]
        for category, tags in categorized.items()
    }

def normalize_tag_map(raw: Any) -> Dict[CategoryName, List[str]]:
    """
    Normalize the tags of a design

    Accepts either a category keyed mapping or a flat list of tags. Unknown
    categories and malformed entries are dropped.
    """
    if raw is None:
        return empty_tag_map()

    if isinstance(raw, (list, tuple)):
        return categorize_tags(raw)

    if not isinstance(raw, dict):
        logger.warning(f"Ignoring malformed tags of type {type(raw).__name__}")
        return empty_tag_map()

    tag_map = empty_tag_map()
    for key, tags in raw.items():
        try:
            category = CategoryName(key)
        except ValueError:
            logger.debug(f"Dropping tags for unknown category {key!r}")
            continue
        tag_map[category] = clean_tag_list(tags)

    return tag_map
