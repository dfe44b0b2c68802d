"""
Field limits shared by the request schemas and the storage layer.
"""

# Task
TITLE_MAX_LENGTH = 100
NOTE_MAX_LENGTH = 1000
ESTIMATED_POMOS_MIN = 1
ESTIMATED_POMOS_MAX = 100

# Session
PLANNED_MINUTES_MIN = 1
PLANNED_MINUTES_MAX = 120
ACTUAL_MINUTES_MIN = 0
ACTUAL_MINUTES_MAX = 180
