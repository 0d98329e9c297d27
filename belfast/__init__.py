"""Game-server models, packet framing and routing, admin form validation and display helpers."""

__version__ = "0.1.0"