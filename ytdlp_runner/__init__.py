"""
ytdlp-runner: an asyncio command/control layer for the yt-dlp executable.
"""

__version__ = "0.3.0"
