"""Generate a tvOS asset catalog from an icon, a background and a brand colour."""

__version__ = "1.0.0"
