"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_REMEMBER_DAYS = 7
DEFAULT_SESSION_HOURS = 12
MIN_PASSWORD_LENGTH = 6

RECENT_ENROLLMENT_DAYS = 30
RECENT_ROWS_LIMIT = 10

# Valor de situacion_actual que cuenta como matriculado
SITUACION_ACTIVO = "Activo"
