"""
Mess Variant Engine

Meal-variant matching and allocation for the school mess module:
per-student safety classification, cohort aggregation, offer-set
selection, nutrition matching, cost exposure and compatibility audit.
"""

__version__ = "1.0.0"
