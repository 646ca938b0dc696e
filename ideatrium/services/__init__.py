"""
Service layer
"""

from .ai_service import AIInsight, AIService, AISuggestion, InsightResult, SuggestionResult

__all__ = ["AIInsight", "AIService", "AISuggestion", "InsightResult", "SuggestionResult"]
