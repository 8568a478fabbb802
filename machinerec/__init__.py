"""Machine Daily Recording System.

Folds operator shift submissions into one sheet per date and rebuilds a
cross-date summary from those sheets.
"""

__version__ = "0.1.0"
