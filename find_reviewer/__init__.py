"""find-reviewer - matches coders who need a review with reviewers who have time."""

__version__ = "0.1.0"
