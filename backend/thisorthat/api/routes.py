from fastapi import APIRouter, Body, HTTPException, Query, Depends, status
from fastapi.responses import PlainTextResponse
from typing import Any, Dict, Optional, Tuple
import logging
from datetime import datetime

from ..config import settings
from ..core.data_loader import load_designs
from ..core.engine import analyze_selections
from ..core.models import (
    AnalyzeRequest, CategoryName, Design, ResultsProfile, SelectionRequest,
    StartSessionRequest
)
from ..core.render import render_text
from ..core.tags import TAG_RULES_VERSION
from ..core.session_manager import (
    DesignNotFoundError, InsufficientSelectionsError, SessionManager, SessionNotFoundError
)
from ..utils.validation import ValidationError, validate_session_id

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "This or That? Design Preference Service"
SERVICE_VERSION = "1.0.0"

# Global state - initialized on first use
_session_manager: Optional[SessionManager] = None

def get_session_manager() -> SessionManager:
    """Dependency to get the session manager instance"""
    global _session_manager

    if _session_manager is None:
        try:
            designs = load_designs(settings.DESIGNS_FILE, settings.FALLBACK_DESIGNS_FILE)
            _session_manager = SessionManager(designs, settings)
            logger.info(f"Session manager initialized with {len(designs)} designs")
        except (FileNotFoundError, ValidationError, ValueError) as e:
            logger.error(f"Failed to initialize session manager: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Design catalogue unavailable: {e}"
            )

    return _session_manager

def _check_session_id(session_id: str):
    is_valid, error = validate_session_id(session_id)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

def _pair_payload(pair: Optional[Tuple[Design, Design]]):
    return list(pair) if pair else None

def _session_lookup_error(e: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

# SESSION ENDPOINTS

@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def start_session(
    request: Optional[StartSessionRequest] = Body(default=None),
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Start a new quiz session

    Returns the session ID, the first design pair and the progress summary
    """
    session = manager.create_session(request.user_metadata if request else None)
    pair = manager.next_pair(session.session_id)

    return {
        "session_id": session.session_id,
        "pair": _pair_payload(pair),
        "progress": manager.get_progress(session.session_id),
        "message": (f"Pick the design you prefer. Results unlock after "
                    f"{manager.min_choices} choices."),
    }

@router.get("/sessions/{session_id}")
async def get_session_status(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Get current status and progress of a quiz session"""
    _check_session_id(session_id)
    try:
        session = manager.get_session(session_id)
        return {
            "session_id": session.session_id,
            "state": session.state,
            "progress": manager.get_progress(session_id),
            "hearted_designs": list(session.hearts),
            "created_at": session.created_at,
            "completed_at": session.completed_at,
            "last_activity": session.last_activity,
        }
    except SessionNotFoundError as e:
        raise _session_lookup_error(e)

@router.get("/sessions/{session_id}/pair")
async def get_current_pair(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Current design pair, drawing a fresh one if none is pending"""
    _check_session_id(session_id)
    try:
        pair = manager.next_pair(session_id)
        return {
            "session_id": session_id,
            "pair": _pair_payload(pair),
            "progress": manager.get_progress(session_id),
        }
    except SessionNotFoundError as e:
        raise _session_lookup_error(e)

@router.post("/sessions/{session_id}/selections")
async def submit_selection(
    session_id: str,
    request: SelectionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """Record the chosen design of the current pair and return the next pair"""
    _check_session_id(session_id)
    try:
        selection = manager.record_selection(session_id, request.selected_id,
                                             request.time_to_decision)
        next_pair = manager.next_pair(session_id)
        progress = manager.get_progress(session_id)

        logger.info(f"Session {session_id}: choice {selection.round_number} recorded, "
                    f"complete={progress['is_complete']}")

        return {
            "session_id": session_id,
            "selection": selection,
            "next_pair": _pair_payload(next_pair),
            "progress": progress,
        }
    except SessionNotFoundError as e:
        raise _session_lookup_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/sessions/{session_id}/favorites/{design_id}")
async def toggle_favorite(
    session_id: str,
    design_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Toggle the heart bookmark of a design"""
    _check_session_id(session_id)
    try:
        hearted = manager.toggle_favorite(session_id, design_id)
        return {"session_id": session_id, "design_id": design_id, "is_hearted": hearted}
    except (SessionNotFoundError, DesignNotFoundError) as e:
        raise _session_lookup_error(e)

@router.get("/sessions/{session_id}/favorites")
async def get_favorites(
    session_id: str,
    limit: int = Query(5, ge=1, le=20, description="Number of favorites"),
    manager: SessionManager = Depends(get_session_manager)
):
    """Top favorite designs from repeat picks and hearts"""
    _check_session_id(session_id)
    try:
        favorites = manager.top_favorites(session_id, limit)
        return {"session_id": session_id, "favorites": favorites, "total": len(favorites)}
    except SessionNotFoundError as e:
        raise _session_lookup_error(e)

def _session_results(manager: SessionManager, session_id: str, allow_partial: bool) -> ResultsProfile:
    _check_session_id(session_id)
    try:
        return manager.get_results(session_id, allow_partial=allow_partial)
    except SessionNotFoundError as e:
        raise _session_lookup_error(e)
    except InsufficientSelectionsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(e),
                "choices_made": e.choices_made,
                "min_choices_required": e.min_choices,
            }
        )

@router.get("/sessions/{session_id}/results", response_model=ResultsProfile)
async def get_results(
    session_id: str,
    allow_partial: bool = Query(False, description="Analyze before the minimum number of choices"),
    manager: SessionManager = Depends(get_session_manager)
):
    """Preference profile built from the session's choices"""
    profile = _session_results(manager, session_id, allow_partial)
    logger.info(f"Session {session_id}: results for {profile.metadata.total_selections} choices")
    return profile

@router.get("/sessions/{session_id}/results/text", response_class=PlainTextResponse)
async def get_results_text(
    session_id: str,
    allow_partial: bool = Query(False, description="Analyze before the minimum number of choices"),
    include_favorites: bool = Query(True, description="List favorite designs"),
    manager: SessionManager = Depends(get_session_manager)
):
    """Plain-text export of the preference profile"""
    profile = _session_results(manager, session_id, allow_partial)
    favorites = manager.top_favorites(session_id) if include_favorites else None
    return PlainTextResponse(render_text(profile, favorites))

# ANALYSIS ENDPOINT

@router.post("/analyze", response_model=ResultsProfile)
async def analyze(
    request: AnalyzeRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """Analyze a supplied selection history without creating a session"""
    designs = request.designs if request.designs is not None else manager.designs
    try:
        return analyze_selections(
            request.selections,
            designs,
            completed_at=request.completed_at or datetime.now(),
            policy=manager.policy,
            max_recommendations=settings.MAX_RECOMMENDATIONS,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

# DESIGN ENDPOINTS

@router.get("/designs")
async def list_designs(
    category: Optional[CategoryName] = Query(None, description="Tag category to filter on"),
    tag: Optional[str] = Query(None, description="Tag that must be present (case-insensitive)"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    manager: SessionManager = Depends(get_session_manager)
):
    """List designs with optional tag filtering"""
    designs = list(manager.designs.values())

    if tag:
        tag_lower = tag.lower()
        categories = [category] if category else list(CategoryName)
        designs = [
            design for design in designs
            if any(tag_lower == t.lower() for c in categories for t in design.tags_for(c))
        ]

    page = designs[offset:offset + limit]
    logger.info(f"Listed {len(page)} of {len(designs)} designs, tag={tag!r}, category={category}")
    return {
        "designs": page,
        "total": len(designs),
        "limit": limit,
        "offset": offset,
    }

@router.get("/designs/{design_id}")
async def get_design(
    design_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Get a single design"""
    try:
        return manager.get_design(design_id)
    except DesignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

# MONITORING ENDPOINTS

@router.get("/health")
async def health_check(manager: SessionManager = Depends(get_session_manager)):
    """Health check with loaded data and session counts"""
    design_count = len(manager.designs)
    return {
        "status": "healthy" if design_count >= 2 else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "components": {
            "designs_loaded": design_count,
            "active_sessions": len(manager.sessions),
        },
        "configuration": {
            "min_choices_required": manager.min_choices,
            "max_choices": manager.max_choices,
            "strong_threshold": manager.policy.strong_threshold,
            "moderate_threshold": manager.policy.moderate_threshold,
            "tag_rules_version": TAG_RULES_VERSION,
        },
    }

@router.get("/stats")
async def get_usage_statistics(manager: SessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    """Session usage statistics"""
    stats = manager.get_stats()
    stats["timestamp"] = datetime.now().isoformat()
    return stats

@router.post("/admin/cleanup")
async def cleanup_sessions(
    max_age_hours: Optional[int] = Query(None, ge=1, le=168,
                                         description="Defaults to SESSION_MAX_AGE_HOURS"),
    manager: SessionManager = Depends(get_session_manager)
):
    """Clean up idle sessions (admin endpoint)"""
    if max_age_hours is None:
        max_age_hours = manager.settings.SESSION_MAX_AGE_HOURS
    removed = manager.cleanup_expired_sessions(max_age_hours)
    logger.info(f"Session cleanup: removed {removed} sessions older than {max_age_hours}h")
    return {
        "sessions_removed": removed,
        "sessions_remaining": len(manager.sessions),
        "max_age_hours": max_age_hours,
        "timestamp": datetime.now().isoformat(),
    }
