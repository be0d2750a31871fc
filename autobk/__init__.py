"""
AutoBk Command Line Tools
=========================

This package contains the command line front end for the AutoBk device
database:
- Device record management (add, modify, delete, get)
- Manual backup triggering for a single device
- Runtime configuration loading and database access
- Error classification and exit code mapping
"""

__version__ = "1.0.0"
__author__ = "AutoBk Team"
