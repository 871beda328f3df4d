from pathlib import Path

# Root-relative data directories
DATA_DIR = Path("data")
PROC_DIR = DATA_DIR / "processed"
OUT_DIR = DATA_DIR / "selection"

# Event identifier column of an eflalo-style catch table
EVENT_ID_COL = "LE_ID"
EVENT_ID_CANDIDATES = ["LE_ID", "le_id", "event_id", "logevent", "trip_id", "haul_id"]

# Percentage thresholds swept by the "total" and "logevent" methods
THRESHOLDS = list(range(5, 101, 5))

# Thresholds whose selections feed the final species list
TOTAL_REFERENCE_THRESHOLD = 95
LOGEVENT_REFERENCE_THRESHOLD = 100

# The scree test needs at least three merge heights
MIN_SPECIES_FOR_HAC = 4
