"""
Business-time deadline calculator for the Bogotá working calendar.
"""

__version__ = "1.0.0"
