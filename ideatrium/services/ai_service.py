"""
AI suggestion service
Asks the generative-language API for per-idea suggestions and backlog
insights. Every failure (missing key, transport error, bad status,
unparseable text) is logged and replaced with a deterministic fallback so
callers always get a result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ideatrium.core.errors import AIServiceError
from ideatrium.core.json_parser import parse_json_from_response
from ideatrium.core.logger import get_logger
from ideatrium.core.models import Idea
from ideatrium.core.quadrant import Quadrant
from ideatrium.llm.client import GeminiClient
from ideatrium.llm.prompt_manager import PromptManager
from ideatrium.models.base import BaseModel

logger = get_logger(__name__)

FALLBACK_WARNING = "AI service unavailable - showing basic analysis instead"


class _AIModel(BaseModel):
    # Model output may carry extra keys; keep what we know
    model_config = ConfigDict(extra="ignore")


class ProsCons(_AIModel):
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class AISuggestion(_AIModel):
    """One suggestion about a single idea"""

    type: Literal["impact", "effort", "tags", "actionPlan", "proscons"]
    title: str
    content: Union[str, List[str], ProsCons]
    confidence: float = Field(ge=0, le=1)
    reasoning: Optional[str] = None


class AIInsight(_AIModel):
    """One observation about the idea backlog"""

    type: Literal["pattern", "recommendation", "trend", "opportunity"]
    title: str
    description: str
    confidence: float = Field(ge=0, le=1)
    actionable: Optional[bool] = None


@dataclass
class SuggestionResult:
    suggestions: List[AISuggestion] = field(default_factory=list)
    is_fallback: bool = False
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.model_dump(exclude_none=True) for s in self.suggestions],
            "isFallback": self.is_fallback,
            "warning": self.warning,
        }


@dataclass
class InsightResult:
    insights: List[AIInsight] = field(default_factory=list)
    is_fallback: bool = False
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insights": [i.model_dump(exclude_none=True) for i in self.insights],
            "isFallback": self.is_fallback,
            "warning": self.warning,
        }


def nudge_score(score: int) -> int:
    """Move a 1-5 score one step toward the middle of the scale"""
    if score < 3:
        return score + 1
    if score > 3:
        return score - 1
    return score


class AIService:
    """Suggestion and insight generation with deterministic fallbacks"""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        prompt_manager: Optional[PromptManager] = None,
    ):
        self.client = client or GeminiClient.from_config()
        self.prompt_manager = prompt_manager or PromptManager()

    # ==================== Parsing ====================

    @staticmethod
    def _parse_items(text: str, key: str, model_cls: type) -> list:
        parsed = parse_json_from_response(text)
        if isinstance(parsed, dict):
            raw_items = parsed.get(key)
        elif isinstance(parsed, list):
            raw_items = parsed
        else:
            raw_items = None
        if not isinstance(raw_items, list):
            raise AIServiceError(f"Invalid JSON response from AI: missing '{key}'")

        items = []
        for raw in raw_items:
            try:
                items.append(model_cls.model_validate(raw))
            except PydanticValidationError as e:
                logger.debug(f"Dropping malformed {key} entry: {e.error_count()} errors")
        if not items:
            raise AIServiceError(f"AI response contained no usable {key}")
        return items

    # ==================== Suggestions ====================

    async def generate_suggestions(self, idea: Idea) -> SuggestionResult:
        """Suggestions for one idea; falls back on any AI failure"""
        try:
            prompt = self.prompt_manager.render(
                "idea_suggestions",
                title=idea.title,
                description=idea.description or "No description provided",
                impact=idea.impact,
                effort=idea.effort,
            )
            text = await self.client.generate_content(
                prompt.user, system_prompt=prompt.system, **prompt.params
            )
            suggestions = self._parse_items(text, "suggestions", AISuggestion)
            logger.info(f"✓ Generated {len(suggestions)} AI suggestions for idea {idea.id}")
            return SuggestionResult(suggestions=suggestions)
        except AIServiceError as e:
            logger.warning(f"AI suggestions unavailable, using fallback: {e.message}")
            return SuggestionResult(
                suggestions=self.fallback_suggestions(idea),
                is_fallback=True,
                warning=FALLBACK_WARNING,
            )

    @staticmethod
    def fallback_suggestions(idea: Idea) -> List[AISuggestion]:
        reasoning = "API unavailable - using fallback analysis"
        return [
            AISuggestion(
                type="impact",
                title="Impact Score Suggestion",
                content=f"Based on analysis, suggested impact: {nudge_score(idea.impact)}/5",
                confidence=0.75,
                reasoning=reasoning,
            ),
            AISuggestion(
                type="effort",
                title="Effort Estimation",
                content=f"Estimated effort level: {nudge_score(idea.effort)}/5",
                confidence=0.7,
                reasoning=reasoning,
            ),
            AISuggestion(
                type="actionPlan",
                title="Basic Action Plan",
                content=[
                    "Research and validate the concept",
                    "Create a detailed project outline",
                    "Identify required resources",
                    "Develop a prototype or MVP",
                    "Test and gather feedback",
                    "Iterate and improve",
                ],
                confidence=0.8,
            ),
            AISuggestion(
                type="proscons",
                title="General Analysis",
                content=ProsCons(
                    pros=[
                        "Addresses a potential need",
                        "Could provide value to users",
                        "Opportunity for learning",
                    ],
                    cons=[
                        "Requires time investment",
                        "May face competition",
                        "Success not guaranteed",
                    ],
                ),
                confidence=0.65,
            ),
        ]

    # ==================== Insights ====================

    async def generate_insights(self, ideas: Sequence[Idea]) -> InsightResult:
        """Backlog insights; empty for no ideas, fallback on any AI failure"""
        if not ideas:
            return InsightResult()

        idea_lines = "\n".join(
            f'{index}. "{idea.title}" (Impact: {idea.impact}/5, '
            f"Effort: {idea.effort}/5, Quadrant: {idea.quadrant.value})"
            for index, idea in enumerate(ideas, start=1)
        )
        try:
            prompt = self.prompt_manager.render(
                "idea_insights", count=len(ideas), idea_lines=idea_lines
            )
            text = await self.client.generate_content(
                prompt.user, system_prompt=prompt.system, **prompt.params
            )
            insights = self._parse_items(text, "insights", AIInsight)
            logger.info(f"✓ Generated {len(insights)} AI insights over {len(ideas)} ideas")
            return InsightResult(insights=insights)
        except AIServiceError as e:
            logger.warning(f"AI insights unavailable, using fallback: {e.message}")
            return InsightResult(
                insights=self.fallback_insights(ideas),
                is_fallback=True,
                warning=FALLBACK_WARNING,
            )

    @staticmethod
    def fallback_insights(ideas: Sequence[Idea]) -> List[AIInsight]:
        total = len(ideas)
        high_impact = sum(1 for idea in ideas if idea.impact >= 4)
        low_effort = sum(1 for idea in ideas if idea.effort <= 2)
        quick_wins = sum(1 for idea in ideas if idea.quadrant == Quadrant.Q2)
        categories = len({tag for idea in ideas for tag in idea.tags})
        share = round(high_impact / total * 100) if total else 0

        if low_effort > 0:
            focus = f"Consider starting with {low_effort} low-effort ideas to build momentum."
        else:
            focus = "Focus on breaking down high-effort ideas into smaller, manageable tasks."

        return [
            AIInsight(
                type="pattern",
                title="Idea Distribution Pattern",
                description=(
                    f"You have {total} ideas with {high_impact} high-impact concepts. "
                    f"{share}% of your ideas show strong potential."
                ),
                confidence=0.9,
            ),
            AIInsight(
                type="opportunity",
                title="Quick Wins Available",
                description=(
                    f'{quick_wins} ideas are in the "Do First" quadrant - these are your '
                    "immediate opportunities for high-impact, low-effort wins."
                ),
                confidence=0.85,
                actionable=True,
            ),
            AIInsight(
                type="recommendation",
                title="Focus Recommendation",
                description=focus,
                confidence=0.8,
                actionable=True,
            ),
            AIInsight(
                type="trend",
                title="Creativity Trend",
                description=(
                    f"Your ideas span {categories} different categories, "
                    "showing diverse thinking patterns."
                ),
                confidence=0.75,
            ),
        ]
