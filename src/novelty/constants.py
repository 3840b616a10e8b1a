"""Constants for novelty tracking."""

# Novelty halves every day after first sighting
DEFAULT_HALF_LIFE_DAYS: float = 1.0

# Novelty never decays below this floor
MIN_NOVELTY_SCORE: float = 0.1

# Entry caps before oldest-by-last_seen eviction
DEFAULT_FILE_MAX_ENTRIES: int = 10000
DEFAULT_KV_MAX_ENTRIES: int = 5000

DEFAULT_KV_KEY: str = "novelty-tracker"

SECONDS_PER_DAY: float = 24 * 60 * 60
