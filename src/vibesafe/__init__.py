"""vibesafe: static security scanner for web application projects."""

__version__ = "0.1.0"
