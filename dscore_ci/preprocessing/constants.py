"""Shared constants for preprocessing and estimation."""

from pathlib import Path

# Directory paths
REPO_DIR = Path(__file__).resolve().parents[2]

OUTPUTS_DIR = REPO_DIR / "outputs"
OUTPUT_STATS_DIR = OUTPUTS_DIR / "stats"
OUTPUT_CACHE_DIR = OUTPUTS_DIR / "cache"

# Canonical trial columns
PARTICIPANT_COL = "participant_id"
DOMAIN_COL = "domain"
BLOCK_COL = "block_type"
RT_COL = "rt_ms"
TRIAL_ORDER_COL = "trial_order"
TRIAL_TYPE_COL = "trial_type"
RECTIFY_COL = "rectify"
BLOCK_ORDER_COL = "block_order_reversed"

# Column aliases seen in exported trial files
PARTICIPANT_ID_ALIASES = {"participant_id", "participantId", "participantid", "unique_id", "subject"}
DOMAIN_ALIASES = ["domain", "condition", "task"]
BLOCK_ALIASES = ["block_type", "block", "cond", "type"]
RT_ALIASES = ["rt_ms", "rt", "latency"]
TRIAL_ORDER_ALIASES = ["trial_order", "trial", "trial_index", "trialIndex"]
TRIAL_TYPE_ALIASES = ["trial_type", "trialtype"]

# Block labels normalised to congruent/incongruent
CONGRUENT = "congruent"
INCONGRUENT = "incongruent"
BLOCK_LABELS = {
    "congruent": CONGRUENT,
    "consistent": CONGRUENT,
    "compatible": CONGRUENT,
    "a": CONGRUENT,
    "incongruent": INCONGRUENT,
    "inconsistent": INCONGRUENT,
    "incompatible": INCONGRUENT,
    "b": INCONGRUENT,
}

# RT filtering constants (floor is exclusive)
DEFAULT_RT_MIN = 0
DEFAULT_RT_MAX = 10000
DEFAULT_MIN_TRIALS_PER_BLOCK = 2

# Bootstrap defaults
DEFAULT_N_BOOT = 2000
DEFAULT_CONFIDENCE = 0.95
DEFAULT_SEED = 2026
DEFAULT_CRITICAL_Z = 1.96
DEFAULT_MIN_VALID_FRACTION = 0.9

# Bumped whenever estimator output changes, so cached tables are rebuilt
ALGORITHM_VERSION = "1"

# Result table contract shared with reporting/plotting scripts
RESULT_COLUMNS = [
    "estimate",
    "ci_lower",
    "ci_upper",
    "ci_width",
    "significant",
    "n_obs",
    "n_valid_replicates",
    "status",
    "reason",
]
