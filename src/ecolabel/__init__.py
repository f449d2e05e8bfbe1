"""EcoLabel - ecological efficiency audits for web pages."""

__version__ = "1.0.0"
