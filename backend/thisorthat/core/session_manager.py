import random
from datetime import datetime, timedelta
from itertools import combinations
from typing import Any, Dict, List, Optional, Tuple
import logging
from typing import TYPE_CHECKING

from .models import (
    Design, FavoriteDesign, QuizSession, ResultsProfile, Selection, SessionState
)
from .engine import analyze_selections
from .scoring import StrengthPolicy

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

MAX_FAVORITES = 5
REPEAT_SELECTION_THRESHOLD = 2
HEART_BONUS = 10
HEART_ONLY_BONUS = 5
RANDOM_PAIR_ATTEMPTS = 10

class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id

class DesignNotFoundError(LookupError):
    def __init__(self, design_id: str):
        super().__init__(f"Design not found: {design_id}")
        self.design_id = design_id

class InsufficientSelectionsError(ValueError):
    """Raised when results are requested before enough choices were made"""

    def __init__(self, choices_made: int, min_choices: int):
        super().__init__(
            f"At least {min_choices} choices are required before showing results, "
            f"{choices_made} made so far"
        )
        self.choices_made = choices_made
        self.min_choices = min_choices

def pair_key(first_id: str, second_id: str) -> Tuple[str, str]:
    """Order independent key of a design pair"""
    return (first_id, second_id) if first_id <= second_id else (second_id, first_id)

class SessionManager:
    """
    In-memory quiz sessions

    Serves unused design pairs, records choices and heart bookmarks, and
    hands the selection history to the aggregation engine for results.
    """

    def __init__(self, designs: List[Design], settings: Optional["Settings"] = None,
                 rng: Optional[random.Random] = None):
        if settings is None:
            from ..config import settings as default_settings
            settings = default_settings

        if len(designs) < 2:
            raise ValueError(f"At least 2 designs are required, got {len(designs)}")

        self.designs: Dict[str, Design] = {design.id: design for design in designs}
        self.settings = settings
        self.sessions: Dict[str, QuizSession] = {}
        self.rng = rng or random.Random(settings.RANDOM_SEED)
        self.policy = StrengthPolicy(
            strong_threshold=settings.STRONG_THRESHOLD,
            moderate_threshold=settings.MODERATE_THRESHOLD,
        )

    @property
    def min_choices(self) -> int:
        return self.settings.MIN_CHOICES_REQUIRED

    @property
    def max_choices(self) -> int:
        return self.settings.max_choices

    def create_session(self, user_metadata: Optional[Dict[str, Any]] = None) -> QuizSession:
        """Create a new session with initialized state"""
        session = QuizSession(user_metadata=user_metadata)
        self.sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> QuizSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_design(self, design_id: str) -> Design:
        design = self.designs.get(design_id)
        if design is None:
            raise DesignNotFoundError(design_id)
        return design

    def next_pair(self, session_id: str) -> Optional[Tuple[Design, Design]]:
        """
        Current pair of the session, drawing a new unused one when needed

        Returns:
            Two distinct designs, or None once the session is complete or
            every pair has been shown
        """
        session = self.get_session(session_id)

        if session.current_pair:
            return self._pair_designs(session.current_pair)

        if session.state == SessionState.COMPLETE:
            return None

        key = self._draw_pair_key(session)
        if key is None:
            logger.info(f"Session {session_id}: all design pairs have been shown")
            self._complete(session)
            return None

        session.used_pairs.append(key)
        first_id, second_id = key
        # Randomize which design is shown on the left
        session.current_pair = [first_id, second_id] if self.rng.random() < 0.5 else [second_id, first_id]
        session.pair_shown_at = datetime.now()
        session.update_activity()

        return self._pair_designs(session.current_pair)

    def _draw_pair_key(self, session: QuizSession) -> Optional[Tuple[str, str]]:
        used = set(session.used_pairs)
        design_ids = list(self.designs)

        for _ in range(RANDOM_PAIR_ATTEMPTS):
            first_id, second_id = self.rng.sample(design_ids, 2)
            key = pair_key(first_id, second_id)
            if key not in used:
                return key

        remaining = [
            pair_key(first_id, second_id)
            for first_id, second_id in combinations(design_ids, 2)
            if pair_key(first_id, second_id) not in used
        ]
        if not remaining:
            return None
        return self.rng.choice(remaining)

    def _pair_designs(self, pair: List[str]) -> Tuple[Design, Design]:
        return self.designs[pair[0]], self.designs[pair[1]]

    def record_selection(self, session_id: str, selected_id: str,
                         time_to_decision: Optional[float] = None) -> Selection:
        """
        Record a choice for the current pair of the session

        Raises:
            SessionNotFoundError: If the session does not exist
            ValueError: If no pair is pending or the design is not part of it
        """
        session = self.get_session(session_id)

        if session.state == SessionState.COMPLETE:
            raise ValueError("Session is complete, no more choices can be recorded")

        if not session.current_pair:
            raise ValueError("No design pair is pending for this session")

        if selected_id not in session.current_pair:
            raise ValueError(f"Design {selected_id} is not part of the current pair")

        rejected_id = next(design_id for design_id in session.current_pair if design_id != selected_id)

        if time_to_decision is None:
            shown_at = session.pair_shown_at or datetime.now()
            time_to_decision = max(0.0, (datetime.now() - shown_at).total_seconds())

        selection = Selection(
            selected_id=selected_id,
            rejected_id=rejected_id,
            round_number=len(session.selections) + 1,
            time_to_decision=time_to_decision,
        )

        session.selections.append(selection)
        session.selection_counts[selected_id] = session.selection_counts.get(selected_id, 0) + 1
        session.current_pair = []
        session.pair_shown_at = None
        session.state = SessionState.IN_PROGRESS
        session.update_activity()

        if len(session.selections) >= self.max_choices:
            self._complete(session)

        logger.debug(f"Session {session_id}: round {selection.round_number}, "
                     f"selected {selected_id} over {rejected_id}")
        return selection

    def _complete(self, session: QuizSession):
        session.state = SessionState.COMPLETE
        session.completed_at = session.completed_at or datetime.now()
        session.current_pair = []
        logger.info(f"Session {session.session_id} complete after {len(session.selections)} choices")

    def get_progress(self, session_id: str) -> Dict[str, Any]:
        """Progress summary including the quiz round and sitting"""
        session = self.get_session(session_id)
        progress = session.get_progress_summary(self.min_choices, self.max_choices)

        rounds_per_session = self.settings.MAX_ROUNDS_PER_SESSION
        choices_made = len(session.selections)
        current_sitting = min(choices_made // rounds_per_session + 1, self.settings.MAX_SESSIONS)
        progress.update({
            "current_session": current_sitting,
            "max_sessions": self.settings.MAX_SESSIONS,
            "rounds_in_session": choices_made - (current_sitting - 1) * rounds_per_session,
            "max_rounds_per_session": rounds_per_session,
            "is_complete": session.state == SessionState.COMPLETE,
        })
        return progress

    def toggle_favorite(self, session_id: str, design_id: str) -> bool:
        """Toggle the heart bookmark of a design, returning the new state"""
        session = self.get_session(session_id)
        self.get_design(design_id)

        if design_id in session.hearts:
            del session.hearts[design_id]
            hearted = False
        else:
            session.hearts[design_id] = datetime.now()
            hearted = True

        session.update_activity()
        logger.debug(f"Session {session_id}: design {design_id} hearted={hearted}")
        return hearted

    def top_favorites(self, session_id: str, limit: int = MAX_FAVORITES) -> List[FavoriteDesign]:
        """
        Favorite designs of a session

        Designs picked at least twice score their pick count plus a bonus of
        10 when hearted. Hearted designs picked fewer times score their pick
        count plus 5. Ties are ordered by title.
        """
        session = self.get_session(session_id)
        favorites: List[FavoriteDesign] = []

        for design_id, count in session.selection_counts.items():
            if count < REPEAT_SELECTION_THRESHOLD or design_id not in self.designs:
                continue
            hearted_at = session.hearts.get(design_id)
            favorites.append(self._favorite(design_id, count, hearted_at,
                                            count + (HEART_BONUS if hearted_at else 0)))

        listed = {favorite.design_id for favorite in favorites}
        for design_id, hearted_at in session.hearts.items():
            if design_id in listed or design_id not in self.designs:
                continue
            count = session.selection_counts.get(design_id, 0)
            favorites.append(self._favorite(design_id, count, hearted_at, count + HEART_ONLY_BONUS))

        favorites.sort(key=lambda favorite: (-favorite.score, favorite.title.lower()))
        return favorites[:limit]

    def _favorite(self, design_id: str, count: int, hearted_at: Optional[datetime],
                  score: int) -> FavoriteDesign:
        design = self.designs[design_id]
        return FavoriteDesign(
            design_id=design_id,
            title=design.title,
            image=design.image,
            website_url=design.website_url,
            selection_count=count,
            is_hearted=hearted_at is not None,
            hearted_at=hearted_at,
            score=score,
        )

    def get_results(self, session_id: str, allow_partial: bool = False) -> ResultsProfile:
        """
        Results profile of the session's choices

        Raises:
            InsufficientSelectionsError: If fewer than the minimum choices
                were made and allow_partial is False
        """
        session = self.get_session(session_id)
        choices_made = len(session.selections)

        if choices_made < self.min_choices and not allow_partial:
            raise InsufficientSelectionsError(choices_made, self.min_choices)

        return analyze_selections(
            session.selections,
            self.designs,
            completed_at=session.completed_at or datetime.now(),
            policy=self.policy,
            max_recommendations=self.settings.MAX_RECOMMENDATIONS,
        )

    def cleanup_expired_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        if max_age_hours is None:
            max_age_hours = self.settings.SESSION_MAX_AGE_HOURS
        cutoff = datetime.now() - timedelta(hours=max_age_hours)

        expired_sessions = [
            sid for sid, session in self.sessions.items()
            if session.last_activity < cutoff
        ]
        for sid in expired_sessions:
            del self.sessions[sid]

        if expired_sessions:
            logger.info(f"Cleaned up {len(expired_sessions)} expired sessions")
        return len(expired_sessions)

    def get_stats(self) -> Dict[str, Any]:
        sessions = list(self.sessions.values())
        completed = [s for s in sessions if s.state == SessionState.COMPLETE]
        choice_counts = [len(s.selections) for s in sessions]
        decision_times = [sel.time_to_decision for s in sessions for sel in s.selections]

        design_picks: Dict[str, int] = {}
        for session in sessions:
            for design_id, count in session.selection_counts.items():
                design_picks[design_id] = design_picks.get(design_id, 0) + count

        return {
            "total_sessions": len(sessions),
            "completed_sessions": len(completed),
            "active_sessions": len(sessions) - len(completed),
            "completion_rate": round(len(completed) / len(sessions), 3) if sessions else 0.0,
            "total_choices": sum(choice_counts),
            "average_choices_per_session": round(sum(choice_counts) / len(sessions), 1) if sessions else 0.0,
            "average_time_to_decision": round(sum(decision_times) / len(decision_times), 2) if decision_times else 0.0,
            "popular_designs": sorted(design_picks.items(), key=lambda x: x[1], reverse=True)[:5],
            "designs_available": len(self.designs),
        }
