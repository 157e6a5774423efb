"""Models package - re-exports all models for convenient imports."""

from boardlens.models.analysis import Analysis, Finding
from boardlens.models.company import Company
from boardlens.models.document import BoardDocument

__all__ = [
    "Analysis",
    "BoardDocument",
    "Company",
    "Finding",
]
