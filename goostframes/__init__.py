"""Animated image frames, GIF decoding, and animated texture and sprite frame import formats."""

__version__ = "0.1.0"

__all__ = ["image_frames", "gif", "loaders", "importers"]