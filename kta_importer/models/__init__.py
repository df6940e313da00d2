"""Domain models for the KTA membership CSV importer."""

from .config_models import CsvDialect, DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .member_record import Gender, MemberRecord
from .processing_result import FailureDetail, ImportCounters, ProcessingResult
from .row_data import RowData

__all__ = [
    # Configuration models
    "CsvDialect",
    "DatabaseConfig",
    "ImportConfig",
    # Processing models
    "ErrorRecord",
    "FailureDetail",
    "Gender",
    "ImportCounters",
    "MemberRecord",
    "ProcessingResult",
    "RowData",
]
