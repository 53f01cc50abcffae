"""Asset building package."""

from src.services.assets.builder import AssetBuilder, FileFetcher

__all__ = [
    "AssetBuilder",
    "FileFetcher",
]
