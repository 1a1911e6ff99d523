"""
Export the Da Lat University (DLU) class timetable to JSON / CSV / ICS.
"""
from __future__ import annotations

__version__ = "0.1.0"
