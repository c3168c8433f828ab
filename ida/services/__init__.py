"""Service layer module."""

from .analysis_mapping import (
    AnalysisMappingService,
    inspection_description_to_analysis_type,
)
from .inspection_data import InspectionDataService

__all__ = [
    "AnalysisMappingService",
    "InspectionDataService",
    "inspection_description_to_analysis_type",
]
