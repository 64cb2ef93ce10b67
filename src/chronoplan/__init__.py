"""chronoplan - heuristic timetabling for interdependent tasks."""

__version__ = "0.1.0"
