from datetime import datetime
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum
from pydantic import BaseModel, Field, field_validator
import uuid

ANALYSIS_VERSION = "1.0"

class CategoryName(str, Enum):
    """Preference dimensions, listed in priority order"""
    STYLE = "style"
    INDUSTRY = "industry"
    TYPOGRAPHY = "typography"
    TYPE = "type"
    CATEGORY = "category"
    PLATFORM = "platform"
    COLORS = "colors"

CATEGORY_ORDER: List[CategoryName] = list(CategoryName)

class StrengthLabel(str, Enum):
    """Qualitative strength of a category preference"""
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"

    @property
    def tier(self) -> int:
        return {"weak": 0, "moderate": 1, "strong": 2}[self.value]

class Design(BaseModel):
    """Catalogued website screenshot with categorized tags"""
    id: str
    name: str = "Untitled Design"
    image: str = ""
    category: str = "Design"
    tags: Dict[CategoryName, List[str]] = Field(default_factory=dict, validate_default=True)
    colors: List[str] = []
    description: Optional[str] = None
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")
    source: Optional[str] = None

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> Dict[CategoryName, List[str]]:
        from .tags import normalize_tag_map
        return normalize_tag_map(value)

    def tags_for(self, category: CategoryName) -> List[str]:
        return self.tags.get(category, [])

    @property
    def title(self) -> str:
        """Company part of names shaped like "Company | Tagline | domain" """
        title = self.name.split("|")[0].strip()
        return title or "Untitled Design"

class Selection(BaseModel):
    """One binary choice: the selected design won over the rejected one"""
    selected_id: Optional[str] = None
    rejected_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
    round_number: int = Field(0, ge=0)
    time_to_decision: float = Field(0.0, ge=0.0, description="Seconds taken to choose")

class TagCount(BaseModel):
    tag: str
    count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)

    class Config:
        frozen = True

class CategoryPreference(BaseModel):
    """Ranked tags within one category"""
    top: List[TagCount] = []
    total_tag_occurrences: int = 0
    total_unique: int = 0

class StrengthScore(BaseModel):
    category: CategoryName
    label: StrengthLabel = StrengthLabel.WEAK
    score: int = Field(0, ge=0, le=100)
    top_choice: Optional[str] = None
    description: str

class CategoryDiversity(BaseModel):
    unique_choices: int = 0
    dominance: int = 0
    variety: str = "low"

class ConsistencyInsight(BaseModel):
    strong_categories: List[CategoryName] = []
    overall_consistency: str = "low"

class StrongestCategory(BaseModel):
    category: Optional[CategoryName] = None
    score: int = 0
    label: StrengthLabel = StrengthLabel.WEAK
    top_choice: Optional[str] = None

class ProfileInsights(BaseModel):
    patterns: List[str] = []
    diversity: Dict[CategoryName, CategoryDiversity] = {}
    consistency: ConsistencyInsight = Field(default_factory=ConsistencyInsight)
    overall_diversity: str = "low"
    strongest_category: StrongestCategory = Field(default_factory=StrongestCategory)

class ProfileMetadata(BaseModel):
    total_selections: int = Field(..., ge=0)
    completed_at: datetime
    analysis_version: str = ANALYSIS_VERSION

class ResultsProfile(BaseModel):
    """Complete preference profile handed to presentation layers"""
    preferences: Dict[CategoryName, CategoryPreference]
    strength_scores: Dict[CategoryName, StrengthScore]
    summary: str
    top_recommendations: List[str]
    insights: ProfileInsights = Field(default_factory=ProfileInsights)
    metadata: ProfileMetadata

    def non_empty_categories(self) -> List[CategoryName]:
        return [c for c in CATEGORY_ORDER if c in self.preferences and self.preferences[c].top]

class FavoriteDesign(BaseModel):
    """Design ranked by how often it was picked and whether it was hearted"""
    design_id: str
    title: str
    image: str = ""
    website_url: Optional[str] = None
    selection_count: int = 0
    is_hearted: bool = False
    hearted_at: Optional[datetime] = None
    score: int = 0

class SessionState(str, Enum):
    """Session states for tracking quiz progress"""
    INITIALIZED = "initialized"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"

class QuizSession(BaseModel):
    """User quiz session with selection history"""
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    state: SessionState = SessionState.INITIALIZED
    selections: List[Selection] = []
    used_pairs: List[Tuple[str, str]] = []
    current_pair: List[str] = []
    pair_shown_at: Optional[datetime] = None
    selection_counts: Dict[str, int] = {}
    hearts: Dict[str, datetime] = {}
    user_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    last_activity: datetime = Field(default_factory=datetime.now)

    def get_progress_summary(self, min_choices: int, max_choices: int) -> Dict[str, Any]:
        """Get quiz progress summary"""
        total = len(self.selections)
        progress = min(total / min_choices, 1.0) if min_choices else 1.0
        return {
            "progress_percentage": round(progress * 100, 1),
            "choices_made": total,
            "min_choices_required": min_choices,
            "remaining_choices": max(0, min_choices - total),
            "max_choices": max_choices,
            "can_show_results": total >= min_choices,
            "current_state": self.state.value,
            "session_duration_minutes": self._get_duration_minutes()
        }

    def _get_duration_minutes(self) -> float:
        end_time = self.completed_at or datetime.now()
        duration = end_time - self.created_at
        return round(duration.total_seconds() / 60.0, 1)

    def update_activity(self):
        self.last_activity = datetime.now()

# API Request Models
class StartSessionRequest(BaseModel):
    """Request to start a new quiz session"""
    user_metadata: Optional[Dict[str, Any]] = None

class SelectionRequest(BaseModel):
    """Request to record a choice for the current pair"""
    selected_id: str = Field(..., min_length=1)
    time_to_decision: Optional[float] = Field(default=None, ge=0.0)

class AnalyzeRequest(BaseModel):
    """Stateless analysis of a supplied selection history"""
    selections: List[Selection]
    designs: Optional[List[Design]] = None
    completed_at: Optional[datetime] = None
