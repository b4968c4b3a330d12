"""
Style Sentry
Finds CSS classes that style files define but JSX/TSX markup never uses.
"""

__version__ = '0.1.0'
