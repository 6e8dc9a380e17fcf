"""
Hand-tuned Training Thresholds.

Every rule in the engine reads its constants from here so the whole
rule catalog can be reviewed in one place. Values follow what worked in
the field with separation-anxiety clients; none are learned.
"""

# ============================================================================
# Mastery
# ============================================================================
MASTERY_CALM_COUNT = 5  # Calm responses needed on one cue
MASTERY_CALM_RATE = 0.7  # Canonical rule also requires a 70% calm rate
CLOSE_TO_MASTERY_MIN = 3  # "Almost there" band is 3-4 calm responses
MISSION_READY_CUES = 3  # Mastered cues needed before absence training

# ============================================================================
# Sample sizes
# ============================================================================
MIN_WINDOW_SAMPLE = 3  # Weekly calm / positive rates
MIN_TIME_OF_DAY_SAMPLE = 10  # Morning / afternoon / evening calm rates
MIN_IMPROVEMENT_PRACTICES = 5  # Cue needs 5 practices to rank improvement
IMPROVEMENT_SPAN = 3  # Compare first 3 vs last 3 responses

# ============================================================================
# Time buckets (local hour boundaries)
# ============================================================================
AFTERNOON_STARTS_HOUR = 12
EVENING_STARTS_HOUR = 17

# ============================================================================
# Streaks
# ============================================================================
STREAK_CELEBRATION_DAYS = (3, 7, 14, 30, 60, 90)

# ============================================================================
# Cue selection scoring
# ============================================================================
CUE_BASE_SCORE = 50.0
CUE_CLOSE_TO_MASTERY_BONUS = 30.0  # Almost there - finish it
CUE_NEW_BONUS = 20.0  # Introduce new material
CUE_WORKING_BONUS = 15.0  # Reinforce what's working
CUE_WORKING_RATE = 0.5
CUE_ANXIOUS_PENALTY = 10.0  # Give it a rest
CUE_MASTERED_PENALTY = 40.0  # Focus elsewhere
CUE_JITTER_MAX = 20.0
CUE_RECENT_EXCLUSION = 2  # Skip the last 2 cues practiced today

# ============================================================================
# Difficulty ladder (multipliers on baseline tolerance)
# ============================================================================
MAJOR_REGRESSION_MULTIPLIER = 0.5  # 3+ consecutive struggled
REGRESSION_MULTIPLIER = 0.7  # Exactly 2 consecutive struggled
MINOR_REGRESSION_MULTIPLIER = 0.85  # Most recent struggled
STRONG_PROGRESS_MULTIPLIER = 1.15  # 4+ great, 0 struggled in last 5
PROGRESS_MULTIPLIER = 1.10  # 3+ great in last 5
OUTCOME_WINDOW = 5
OWNER_STRAIN_MULTIPLIER = 0.8  # Anxious mood or low energy
OWNER_CONFIDENT_MULTIPLIER = 1.1  # Confident mood and high energy
MIN_TARGET_MINUTES = 1
MAX_TARGET_MINUTES = 60

# ============================================================================
# Insight rules
# ============================================================================
TREND_DELTA = 0.15  # Week-over-week rate gain that counts as a trend
TOUGH_WEEK_SHARE = 0.5
GOOD_WEEK_RATE = 0.6
NEW_USER_SESSIONS = 10
WELCOME_BACK_LONG_DAYS = 7
WELCOME_BACK_SHORT_DAYS = 3
TOUGH_STRETCH_ANXIOUS = 3
TOUGH_STRETCH_FRUSTRATED = 2
ON_FIRE_PRACTICES = 5
ABSENCE_TIP_IDLE_DAYS = 5

# ============================================================================
# Predictions
# ============================================================================
AVG_PRACTICES_TO_MASTER_CUE = 12
DEFAULT_PRACTICES_PER_DAY = 3
PLATEAU_FIRST_DAY = 14
PLATEAU_LAST_DAY = 28
ABSENCE_GOAL_MINUTES = 30
MINUTES_GAINED_PER_SESSION = 2
SESSIONS_PER_DAY = 0.7
BUILDING_DATA_PRACTICES = 5
SUCCESS_BASE_PERCENT = 60
SUCCESS_CAP_PERCENT = 95

SEVERITY_MULTIPLIERS = {
    "mild": 0.7,
    "moderate": 1.0,
    "severe": 1.5,
}

AGE_MULTIPLIERS = {
    "puppy": 0.8,
    "young": 0.9,
    "adult": 1.0,
    "senior": 1.2,
}

EXPECTED_CALM_RATE = {
    "mild": 0.7,
    "moderate": 0.55,
    "severe": 0.4,
}

# ============================================================================
# Today's practice goal
# ============================================================================
GOAL_NEW_USER_PRACTICES = 5
GOAL_STARTER = 3
GOAL_BUILDING = 4
GOAL_ESTABLISHED = 5

# ============================================================================
# Journal
# ============================================================================
JOURNAL_MIN_ENTRIES = 3  # Entries needed before looking for patterns
JOURNAL_RETURN_DAYS = 3
JOURNAL_STREAK_DAYS = 7
JOURNAL_SETBACK_ANXIOUS = 2  # Anxious responses in a row that count as a setback
MOOD_TREND_DELTA = 0.5  # Average mood-score gap between recent and older halves
EXERCISE_CALM_SHARE = 0.6
COMMON_TAGS_LIMIT = 5
GENERAL_PROMPT_VARIANTS = 4
