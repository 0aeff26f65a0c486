"""
html2png: render HTML (with optional CSS and element selector) to PNG over HTTP.
"""

__version__ = "1.0.0"
