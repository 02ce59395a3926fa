"""
Resource services, one per API resource family.
"""

from .analysis import AnalysisProfilesService, AnalysisService
from .base import BaseService
from .search import SearchService
from .tasks import BaseTasksService, TermRequestsService
from .terminology import TerminologyService

__all__ = [
    "AnalysisProfilesService",
    "AnalysisService",
    "BaseService",
    "BaseTasksService",
    "SearchService",
    "TermRequestsService",
    "TerminologyService",
]
