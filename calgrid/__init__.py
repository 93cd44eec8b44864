"""calgrid - weekly availability grids from iCalendar feeds and manual selections.

Importing the package does not pull in httpx or icalendar; those load with
the modules that use them.
"""

__version__ = "0.1.0"
