"""sitectl — site-build orchestrator with plugin hooks and live reload."""

__version__ = "0.1.0"
