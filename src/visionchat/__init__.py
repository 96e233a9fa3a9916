"""visionchat: a multi-provider chat client with summary-aware context windows."""

__version__ = "1.0.0"
