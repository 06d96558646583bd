"""SwiftKopa consumer loan engine."""

__version__ = "1.0.0"
