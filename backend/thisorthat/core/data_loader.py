import json
import os
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from pydantic import BaseModel
import logging

from .models import CategoryName, CATEGORY_ORDER, Design
from .tags import categorize_tags
from ..utils.validation import (
    ValidationError, is_tag_artifact, validate_hex_color, validate_image_path
)

logger = logging.getLogger(__name__)

MIN_DESIGNS_FOR_QUIZ = 2
DEFAULT_DESIGN_CATEGORY = "Design"
TRACKING_PARAMS = ("ref",)

class DatasetValidationReport(BaseModel):
    """Outcome of validating a designs document"""
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
    designs: List[Design] = []
    metadata: Dict[str, Any] = {}

def clean_website_url(url: Optional[str]) -> Optional[str]:
    """Remove tracking parameters (``?ref=...``) from a website URL"""
    if not url:
        return url

    try:
        parts = urlsplit(url)
    except ValueError as e:
        logger.warning(f"Failed to clean URL {url!r}: {e}")
        return url

    if not parts.scheme or not parts.netloc:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    if not any(k in TRACKING_PARAMS for k, _ in params):
        return url

    query = [(k, v) for k, v in params if k not in TRACKING_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))

def clean_color_list(colors: Any, index: int, warnings: List[str]) -> List[str]:
    """Upper-case, validate and de-duplicate hex colors"""
    if not isinstance(colors, list):
        if colors is not None:
            warnings.append(f"Design at index {index} has non-array colors")
        return []

    cleaned = []
    for position, color in enumerate(colors):
        if not isinstance(color, str):
            warnings.append(f"Design at index {index} has non-string color at position {position}")
            continue

        color = color.strip().upper()
        is_valid, _ = validate_hex_color(color)
        if is_valid and color not in cleaned:
            cleaned.append(color)
        elif not is_valid and color:
            warnings.append(f"Design at index {index} has invalid color format: {color}")

    return cleaned

def clean_string_tags(tags: List[Any], index: int, category: str, warnings: List[str],
                      fold_case: bool = True) -> List[str]:
    """
    Drop scraping artifacts and non-string tags

    With fold_case, later tags that differ only in case from an earlier one
    are dropped as well.
    """
    cleaned = []
    seen = set()

    for position, tag in enumerate(tags):
        if not isinstance(tag, str):
            warnings.append(f"Design at index {index} has non-string tag in {category} "
                            f"at position {position}")
            continue

        tag = tag.strip()
        if not tag or is_tag_artifact(tag):
            continue
        if fold_case:
            if tag.lower() in seen:
                continue
            seen.add(tag.lower())

        cleaned.append(tag)

    return cleaned

def clean_tags(raw_tags: Any, colors: List[str], index: int,
               warnings: List[str]) -> Dict[str, List[str]]:
    """
    Clean the tags of one design record

    Flat lists are categorized with the tag rules, which only remove exact
    duplicates. Category keyed mappings are cleaned per category; colors
    found there are merged with the design level colors.
    """
    if isinstance(raw_tags, list):
        flat = clean_string_tags(raw_tags, index, "tags", warnings, fold_case=False)
        categorized = categorize_tags(flat, colors)
        return {category.value: tags for category, tags in categorized.items()}

    cleaned: Dict[str, List[str]] = {category.value: [] for category in CATEGORY_ORDER}
    if raw_tags is None:
        cleaned[CategoryName.COLORS.value] = colors
        return cleaned

    if not isinstance(raw_tags, dict):
        warnings.append(f"Design at index {index} has malformed tags")
        cleaned[CategoryName.COLORS.value] = colors
        return cleaned

    for category in CATEGORY_ORDER:
        value = raw_tags.get(category.value)
        if value is None:
            continue
        if not isinstance(value, list):
            warnings.append(f"Design at index {index} has non-array {category.value} tags")
            continue
        if category == CategoryName.COLORS:
            cleaned[category.value] = clean_color_list(value, index, warnings)
        else:
            cleaned[category.value] = clean_string_tags(value, index, category.value, warnings)

    for color in colors:
        if color not in cleaned[CategoryName.COLORS.value]:
            cleaned[CategoryName.COLORS.value].append(color)

    return cleaned

def clean_design(record: Any, index: int, errors: List[str],
                 warnings: List[str]) -> Optional[Design]:
    """Validate one design record, returning None when it must be dropped"""
    if not isinstance(record, dict):
        errors.append(f"Design at index {index} is not a valid object")
        return None

    design_id = record.get("id")
    if not isinstance(design_id, str) or not design_id.strip():
        errors.append(f"Design at index {index} missing valid id")
        return None

    image = record.get("image")
    is_valid, error = validate_image_path(image)
    if not is_valid:
        errors.append(f"Design at index {index} missing valid image path: {error}")
        return None

    category = record.get("category")
    if isinstance(category, list):
        category = category[0] if category and isinstance(category[0], str) else None
    if not isinstance(category, str) or not category.strip():
        category = DEFAULT_DESIGN_CATEGORY

    colors = clean_color_list(record.get("colors"), index, warnings)
    name = record.get("name") or record.get("title")

    return Design(
        id=design_id.strip(),
        name=name.strip() if isinstance(name, str) and name.strip() else "Untitled Design",
        image=image.strip(),
        category=category.strip(),
        tags=clean_tags(record.get("tags"), colors, index, warnings),
        colors=colors,
        description=record.get("description") if isinstance(record.get("description"), str) else None,
        website_url=clean_website_url(record.get("websiteUrl") or record.get("website_url")),
        source=record.get("source") if isinstance(record.get("source"), str) else None,
    )

def validate_designs_data(data: Any) -> DatasetValidationReport:
    """
    Validate and clean a ``{metadata, designs: [...]}`` document

    Invalid designs are dropped and reported as errors. Recoverable problems
    (bad colors, non-string tags, missing metadata) are reported as warnings.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(data, dict):
        return DatasetValidationReport(is_valid=False, errors=["Data must be a valid object"])

    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        warnings.append("Missing or invalid metadata section")
        metadata = {}
    else:
        if not metadata.get("generatedAt"):
            warnings.append("Missing generatedAt in metadata")
        if not isinstance(metadata.get("totalDesigns"), int):
            warnings.append("totalDesigns should be a number")

    records = data.get("designs")
    if not isinstance(records, list):
        errors.append("designs must be an array")
        return DatasetValidationReport(is_valid=False, errors=errors, warnings=warnings)

    if not records:
        errors.append("designs array cannot be empty")
        return DatasetValidationReport(is_valid=False, errors=errors, warnings=warnings)

    designs: List[Design] = []
    seen_ids = set()
    for index, record in enumerate(records):
        design = clean_design(record, index, errors, warnings)
        if design is None:
            continue
        if design.id in seen_ids:
            warnings.append(f"Design at index {index} duplicates id {design.id}, keeping the first")
            continue
        seen_ids.add(design.id)
        designs.append(design)

    if not designs:
        errors.append("No valid designs found after validation")
        return DatasetValidationReport(is_valid=False, errors=errors, warnings=warnings)

    cleaned_metadata = {
        **metadata,
        "totalDesigns": len(designs),
        "validationErrors": len(errors),
        "validationWarnings": len(warnings),
    }

    return DatasetValidationReport(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        designs=designs,
        metadata=cleaned_metadata,
    )

def read_designs_file(file_path: str) -> DatasetValidationReport:
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Designs file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {file_path}", [str(e)]) from e

    report = validate_designs_data(data)
    for warning in report.warnings:
        logger.debug(f"{file_path}: {warning}")
    for error in report.errors:
        logger.warning(f"{file_path}: {error}")
    return report

def load_designs(file_path: str, fallback_path: Optional[str] = None) -> List[Design]:
    """
    Load the design catalogue, trying the fallback file when the primary fails

    Raises:
        FileNotFoundError: If no candidate file exists
        ValidationError: If no candidate file holds enough valid designs
    """
    candidates = [file_path] + ([fallback_path] if fallback_path else [])
    failures: List[str] = []
    missing = 0

    for path in candidates:
        try:
            report = read_designs_file(path)
        except FileNotFoundError as e:
            logger.warning(str(e))
            failures.append(str(e))
            missing += 1
            continue
        except ValidationError as e:
            logger.error(f"Failed to load designs: {e}")
            failures.append(str(e))
            continue

        if len(report.designs) < MIN_DESIGNS_FOR_QUIZ:
            message = (f"{path} has {len(report.designs)} valid designs, "
                       f"at least {MIN_DESIGNS_FOR_QUIZ} are required")
            logger.error(message)
            failures.append(message)
            continue

        logger.info(f"Successfully loaded {len(report.designs)} designs from {path} "
                    f"({len(report.warnings)} warnings, {len(report.errors)} errors)")
        return report.designs

    if missing == len(candidates):
        raise FileNotFoundError(f"No designs file found: {', '.join(candidates)}")
    raise ValidationError("Failed to load designs", failures)
