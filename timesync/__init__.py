"""
TimeSync - find the meeting slot that suits everyone.
"""

__version__ = "0.1.0"
