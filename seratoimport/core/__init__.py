"""
Serato Import Core Package

This package contains the reconciliation engine, models and exceptions
for the Serato Import application.
"""

from .models import ImportOptions, ImportResult, BatchImportResult, Decision
from .exceptions import SeratoImportError, ServiceError, BitrateProbeError

__all__ = [
    'ImportOptions',
    'ImportResult',
    'BatchImportResult',
    'Decision',
    'SeratoImportError',
    'ServiceError',
    'BitrateProbeError'
]
