"""LearnHub: AI study companion core (provider orchestration and tag parsing)."""

__version__ = "1.0.0"
