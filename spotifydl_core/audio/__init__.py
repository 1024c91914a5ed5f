"""
Audio package
ID3 tag and artwork embedding
"""

from .metadata import MetadataManager

__all__ = ['MetadataManager']
