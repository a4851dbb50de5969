"""
Streaming multipart parsing for upload bodies.
"""

from .reader import MultipartReader, MultipartPart

__all__ = [
    "MultipartReader",
    "MultipartPart",
]
