"""Subtitle delivery service for library video items.

This service handles:
- Serving stored subtitle files unmodified
- Transcoding subtitle streams to a requested format and time range
- HLS subtitle playlists with time-mapped WebVTT segments
- Remote subtitle search and download
"""

__version__ = "1.0.0"
