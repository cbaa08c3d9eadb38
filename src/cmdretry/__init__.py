"""cmdretry - retry a command until it succeeds"""

__version__ = "0.1.0"
