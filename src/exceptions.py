"""
Consolidated exception hierarchy for the detection analytics engine.

This module provides a unified exception hierarchy that allows for:
- Consistent error handling across all analytics components
- Hierarchical exception catching (e.g., catch all InputError)
- Clear categorization of error types
"""


# =============================================================================
# Base Exception
# =============================================================================

class AnalyticsError(Exception):
    """Base exception for all detection analytics errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(AnalyticsError):
    """Raised when configuration is missing or invalid."""
    pass


# =============================================================================
# Input Errors
# =============================================================================

class InputError(AnalyticsError):
    """Base exception for problems with caller-supplied detection data."""
    pass


class InvalidInputError(InputError):
    """Raised when input is structurally invalid (not a collection of records)."""
    pass


class NormalizationError(InputError):
    """Raised when a single record cannot be normalized under the reject policy."""
    pass
