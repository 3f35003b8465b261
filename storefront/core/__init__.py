# Core modules

from .config import Settings, get_settings
from .errors import StorefrontError

__all__ = ["Settings", "get_settings", "StorefrontError"]
