"""HyperCyber compliance backend: RGPD registers and asset catalogue per entity."""

__version__ = "0.1.0"
