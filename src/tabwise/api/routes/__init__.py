"""API Routes"""

from . import pattern_detections, research_sessions

__all__ = ["pattern_detections", "research_sessions"]
