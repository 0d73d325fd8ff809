"""Process Kitty - process inspection and comparison for the terminal."""

__version__ = "0.1.0"
