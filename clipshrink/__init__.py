"""clipshrink - shrink images placed on the clipboard, in place."""

__version__ = "0.1.0"
