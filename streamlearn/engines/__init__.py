from .base import BaseEngine

__all__ = ["BaseEngine"]
