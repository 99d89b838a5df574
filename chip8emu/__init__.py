"""
CHIP-8 interpreter with a pygame front end.
"""

__version__ = "1.0.0"
