"""
Punchclock - Source Package

A console time clock: users clock in and out of projects, every punch
is appended to a time card file, and finished sessions are credited to
the project's running total.

DESIGN PRINCIPLES:
1. The time card file is the source of truth for punches
2. Fail early, fail visibly
3. A failed save leaves the files as they were
4. Every state change is auditable
5. Menus never touch files directly
"""

__version__ = "1.0.0"
__author__ = "Punchclock Team"
