"""
Analysis profiles and segment analysis (the CheckTerm module).
"""

from typing import Iterable, Optional

from ..models.analysis import AnalysisProfile, AnalyzeResultPairs, AnalyzeType, Segment
from .base import BaseService

PROFILES_PATH = "/api/analysis/profiles"
ANALYZE_SEGMENT_PATH = "/api/analysis/segment"


class AnalysisProfilesService(BaseService):

    async def get_analysis_profile(self, profile_id: int) -> AnalysisProfile:
        response = await self._get(f"{PROFILES_PATH}/{profile_id}")
        return AnalysisProfile.from_dict(response)


class AnalysisService(BaseService):
    """Runs the termbases of an analysis profile against a segment."""

    async def analyze_segment(self, segment: Segment, profile_id: int,
                              source_language_ids: Iterable[int],
                              target_language_ids: Optional[Iterable[int]] = None,
                              analyze_type: AnalyzeType = AnalyzeType.SOURCE) -> AnalyzeResultPairs:
        """
        Analyze one segment.

        Args:
            segment: Text to analyze
            profile_id: Analysis profile selecting termbases and rules
            source_language_ids: Language(s) of the segment
            target_language_ids: Target language(s), ignored by source-only analysis
            analyze_type: Which side(s) to analyze

        Returns:
            Result pairs; each flags whether the searched term is problematical
        """
        body = {
            "segment": segment.to_dict(),
            "profileId": profile_id,
            "sourceLanguageIds": list(source_language_ids),
            "targetLanguageIds": list(target_language_ids or []),
            "analyzeType": analyze_type.value,
        }
        response = await self._post(ANALYZE_SEGMENT_PATH, body)
        return AnalyzeResultPairs.from_dict(response or {})
