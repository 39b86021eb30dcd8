"""Static constants and mappings for stride-cli."""

from __future__ import annotations

DEFAULT_REST_SECONDS = 15
DEFAULT_TICK_SECONDS = 1.0
SUCCESSFUL_COMPLETION_RATIO = 0.7
NICE_EFFORT_RATIO = 0.5
FALLBACK_EXERCISE_COUNT = 5

CATEGORY_LABELS = {
    "balance": "Balance",
    "strength": "Strength",
    "flexibility": "Flexibility",
    "fall_prevention": "Fall Prevention",
    "posture": "Posture",
    "breathing": "Breathing",
    "warmup": "Warm Up",
    "cooldown": "Cool Down",
}

DIFFICULTY_LABELS = {
    "easy": "Easy",
    "moderate": "Moderate",
    "challenging": "Challenging",
}

# Companion message envelope types
MSG_START_WORKOUT = "startWorkout"
MSG_PAUSE_WORKOUT = "pauseWorkout"
MSG_RESUME_WORKOUT = "resumeWorkout"
MSG_END_WORKOUT = "endWorkout"
MSG_EXERCISE_CHANGE = "exerciseChange"
MSG_HEART_RATE_UPDATE = "heartRateUpdate"
MSG_POSTURE_ALERT = "postureAlert"
MSG_SYNC_PROGRESS = "syncProgress"
MSG_REQUEST_HEART_RATE = "requestHeartRate"

MESSAGE_TYPES = {
    MSG_START_WORKOUT,
    MSG_PAUSE_WORKOUT,
    MSG_RESUME_WORKOUT,
    MSG_END_WORKOUT,
    MSG_EXERCISE_CHANGE,
    MSG_HEART_RATE_UPDATE,
    MSG_POSTURE_ALERT,
    MSG_SYNC_PROGRESS,
    MSG_REQUEST_HEART_RATE,
}

END_POLICY_TRUST_LOCAL = "trust_local"
END_POLICY_TRUST_REMOTE = "trust_remote"
END_POLICIES = (END_POLICY_TRUST_LOCAL, END_POLICY_TRUST_REMOTE)

EXERCISE_COMPLETE_PHRASES = [
    "Exercise complete. Take a moment to rest.",
    "Well done! Rest and get ready for the next exercise.",
    "Great work! Catch your breath.",
    "Excellent! Rest up.",
]

HALFWAY_PHRASE = "You're halfway there!"
WORKOUT_COMPLETE_PHRASE = "Congratulations! You've completed your workout. Great job today!"

HEADLINE_SUCCESS = "Great Workout!"
HEADLINE_NICE_EFFORT = "Nice Effort!"
HEADLINE_EVERY_STEP = "Every Step Counts!"

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]
