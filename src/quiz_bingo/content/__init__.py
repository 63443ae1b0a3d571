"""Content providers supplying the item pool and subject metadata."""

from .base import ContentProvider, image_to_data_uri
from .openrouter import OpenRouterProvider
from .static import StaticPoolProvider

__all__ = ["ContentProvider", "OpenRouterProvider", "StaticPoolProvider", "image_to_data_uri"]
