"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_REG_NO_LENGTH = 64
MAX_TEXT_LENGTH = 255
IMPORT_CSV_HEADER = ("regNo", "name", "department")
