"""Read, extract and build Nintendo 64 Controller Pak images."""

__version__ = "0.1.0"