"""
Client Components.

- DirectorClient: control calls (GetSection/SetSection) and director actions
- SectionViewerClient: push channel viewer with an explicit retry policy
"""

from .director_client import DirectorClient
from .viewer_client import ConnectionState, RetryPolicy, SectionViewerClient, viewer_url

__all__ = ["DirectorClient", "SectionViewerClient", "ConnectionState", "RetryPolicy", "viewer_url"]
