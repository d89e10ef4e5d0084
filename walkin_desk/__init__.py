"""
Walk-in order desk for the workshop dashboard.
"""
__version__ = "1.0.0"
