"""FitPlan: weekly fitness plan lifecycle with durable per-user storage."""

__version__ = "0.3.0"
