"""Configuration: format constants and loader settings"""

from .settings import LoaderSettings

__all__ = ['LoaderSettings']
