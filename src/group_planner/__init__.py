"""Group outing planner driven by replies in a shared chat."""

__version__ = "0.3.0"
