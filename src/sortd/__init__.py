"""
sortd: pattern-driven file organization.
"""

__version__ = "0.1.0"
