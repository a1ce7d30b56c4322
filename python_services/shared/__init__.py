"""
Shared utilities and types for the narration services.
"""

__version__ = "0.1.0"

# Convenience re-exports
from .models import *  # noqa: F401,F403
from .config import get_settings  # noqa: F401
