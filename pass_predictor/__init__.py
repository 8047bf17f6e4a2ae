"""Student pass/fail predictor client."""

__version__ = "0.1.0"
