"""PyDecline - Arps decline curve fitting with a Nelder-Mead simplex optimizer."""

__version__ = "0.1.0"
