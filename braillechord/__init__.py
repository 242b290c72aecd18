"""
braillechord - Chorded Braille input over eight touch zones

Turns a drag or tap across a 2x4 grid of touch zones into a six-dot
Braille cell, and the cell into a character from a CSV mapping table.
"""

__version__ = "0.1.0"
