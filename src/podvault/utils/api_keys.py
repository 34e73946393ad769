"""API key validation utilities.

Validates the Gemini key's format, length, and common copy/paste mistakes so
configuration errors surface before the first upload.
"""

import os
import re

from podvault.utils.errors import APIKeyError

GEMINI_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


def validate_api_key(key: str | None, key_name: str = "GEMINI_API_KEY") -> str:
    """Validate Gemini API key format and return cleaned key.

    Args:
        key: The API key to validate (may be None)
        key_name: Setting or environment variable name (for error messages)

    Returns:
        Validated and stripped API key

    Raises:
        APIKeyError: If key is missing, empty, or malformed
    """
    if key is None or not key.strip():
        raise APIKeyError(
            "Gemini API key is required.\n"
            f"Set the {key_name} environment variable.\n"
            f"Example: export {key_name}='your-api-key-here'"
        )

    stripped = key.strip()
    if (stripped.startswith('"') and stripped.endswith('"')) or (
        stripped.startswith("'") and stripped.endswith("'")
    ):
        raise APIKeyError(
            "Gemini API key should not be quoted.\n"
            f"Remove quotes from {key_name}.\n"
            f"Example: export {key_name}=your-api-key-here"
        )

    if any(char in key for char in ["\n", "\r", "\0", "\t"]):
        raise APIKeyError(
            "Gemini API key contains invalid characters.\n"
            "API keys should not contain newlines or control characters.\n"
            f"Check {key_name}."
        )

    key = stripped

    if len(key) < 20:
        raise APIKeyError(
            "Gemini API key appears invalid (too short).\n"
            f"Expected at least 20 characters, got {len(key)}.\n"
            f"Check {key_name}."
        )

    if not re.match(r"^AIza[A-Za-z0-9_-]+$", key):
        raise APIKeyError(
            "Gemini API key format appears invalid.\n"
            "Gemini keys start with 'AIza' and contain only "
            "alphanumeric characters, underscores, and dashes.\n"
            f"Check {key_name}."
        )

    return key


def resolve_api_key(configured: str | None = None) -> str:
    """Resolve the Gemini key from config, then the environment.

    Precedence: explicit/configured value, GEMINI_API_KEY, GOOGLE_API_KEY.

    Raises:
        APIKeyError: If no usable key is found
    """
    if configured:
        return validate_api_key(configured, "summary.api_key")

    for env_var in GEMINI_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            return validate_api_key(value, env_var)

    return validate_api_key(None, GEMINI_ENV_VARS[0])
