"""Client for the public procurement records ("marchés publics") dashboard."""

__version__ = "0.1.0"
