"""layergrid — undoable editing core for layered character grids."""

__version__ = "0.1.0"
