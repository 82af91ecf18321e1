"""CourseMaster API - progress, enrollment and assessment engine."""

__version__ = "0.1.0"
