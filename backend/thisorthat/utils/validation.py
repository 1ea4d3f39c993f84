import re
from typing import Any, List, Optional, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)

# Scraping artifacts that show up as tags on gallery pages
TAG_ARTIFACTS = {",", "Claim this website", "PRO"}

def validate_session_id(session_id: Any) -> Tuple[bool, Optional[str]]:

    if not isinstance(session_id, str):
        return False, f"Session ID must be a string, got {type(session_id)}"

    try:
        uuid.UUID(session_id)
    except ValueError:
        return False, f"Invalid session ID format: {session_id}"

    return True, None

def validate_hex_color(color: Any) -> Tuple[bool, Optional[str]]:

    if not isinstance(color, str):
        return False, f"Color must be a string, got {type(color)}"

    if not HEX_COLOR_PATTERN.match(color.strip()):
        return False, f"Invalid hex color: {color}"

    return True, None

def validate_image_path(path: Any) -> Tuple[bool, Optional[str]]:
    """Absolute URLs and relative paths are both accepted"""

    if not isinstance(path, str) or not path.strip():
        return False, "Image path must be a non-empty string"

    path = path.strip()
    if "://" in path and not re.match(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://[^\s/]+", path):
        return False, f"Invalid image URL: {path}"

    return True, None

def is_tag_artifact(tag: str) -> bool:
    return tag in TAG_ARTIFACTS or "," in tag

class ValidationError(Exception):
    """Custom exception for validation errors"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self):
        if self.errors:
            return f"{super().__str__()}: {'; '.join(self.errors)}"
        return super().__str__()
