"""learngate - Request validation and email verification core."""

__version__ = "0.1.0"
