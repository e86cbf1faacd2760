"""
MfgFlow - Manufacturing Management Backend
"""
__version__ = "1.0.0"
