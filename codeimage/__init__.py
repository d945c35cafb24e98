"""Token-stream bitmaps for source files, plus a small image classifier front end."""

__version__ = '0.1.0'
