"""
Feature Flags Configuration

Centralized feature flag management for the backend.
All feature flags are loaded from environment variables.
"""
import os


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


class FeatureFlags:
    """
    Feature flags for the application.

    To add a new feature flag:
    1. Add it here as a class property
    2. Load it from environment variable
    3. Use it in your code
    """

    # Reject re-submission of a draft already appended to the same module.
    # When off, a repeated append concatenates lessons/exercises again.
    FEATURE_REJECT_DUPLICATE_APPEND: bool = get_bool_env('FEATURE_REJECT_DUPLICATE_APPEND', True)

    # Seed the discipline catalog and run a counter sweep on startup
    FEATURE_SEED_DISCIPLINES: bool = get_bool_env('FEATURE_SEED_DISCIPLINES', True)

    @classmethod
    def get_all_flags(cls) -> dict:
        """Get all feature flags as a dictionary."""
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.startswith('FEATURE_')
        }


feature_flags = FeatureFlags()
