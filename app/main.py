"""
Console launcher for Punchclock

Run from the repository root:
    python app/main.py

Data files are read from and written to PUNCHCLOCK_DATA_DIR (default: csv/).
"""

from punchclock.console import main


if __name__ == "__main__":
    main()
