"""Exit codes shared by CLI commands."""

VALIDATION_EXIT_CODE = 10
PROVIDER_EXIT_CODE = 20
NOT_FOUND_EXIT_CODE = 30
SYSTEM_EXIT_CODE = 40

__all__ = ["NOT_FOUND_EXIT_CODE", "PROVIDER_EXIT_CODE", "SYSTEM_EXIT_CODE", "VALIDATION_EXIT_CODE"]
