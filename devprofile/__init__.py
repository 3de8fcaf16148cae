"""devprofile: AI analysis of a developer's contribution to a GitHub repository."""

__version__ = "0.1.0"
