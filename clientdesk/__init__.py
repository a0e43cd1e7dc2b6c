"""ClientDesk.

Client management backend: secrets are stored encrypted at rest.
"""
from .version import __version__, __title__, __description__

__all__ = ("__version__", "__title__", "__description__")
