"""ason - scaffold projects from reusable directory templates."""

__version__ = "0.3.0"
