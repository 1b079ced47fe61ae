"""
Validation and error handling for the sysdash package.

This module provides input validation and error handling with consistent
error reporting across the server, the client store and the CLI.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    handle_error,
    handle_config_error,
    handle_file_error,
    handle_cli_error,
)

from .validators import (
    validate_boolean,
    validate_enum_choice,
    validate_non_empty_string,
    validate_percentage,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Core functionality
    "ErrorSeverity",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_cli_error",
    # Validators
    "validate_boolean",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_percentage",
    "validate_positive_float",
    "validate_positive_integer",
]
