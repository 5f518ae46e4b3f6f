"""
Practice Coach Configuration

Centralized configuration for the practice interview backend.
Deploy-time values can be overridden through environment variables
(or a .env file in the working directory).
"""

import os
from fractions import Fraction
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


# ============================================================================
# Application Configuration
# ============================================================================

APP_CONFIG = {
    "title": "Practice Coach API",
    "version": "1.0.0",

    # Bind address used by run_server()
    "host": os.getenv("PRACTICE_COACH_HOST", "0.0.0.0"),
    "port": int(os.getenv("PRACTICE_COACH_PORT", "8000")),

    # Comma separated list of allowed CORS origins
    "cors_origins": os.getenv("PRACTICE_COACH_CORS_ORIGINS", "*").split(","),
}

# ============================================================================
# Store Configuration
# ============================================================================

STORE_CONFIG = {
    # Options: "memory"
    "backend": os.getenv("PRACTICE_COACH_STORE", "memory"),

    # JSON file with demo users and the question bank ("" = no seeding)
    "seed_path": os.getenv(
        "PRACTICE_COACH_SEED",
        str(Path(__file__).parent / "data" / "questions.json"),
    ),
}

# ============================================================================
# Scoring Configuration
# ============================================================================

SCORING_CONFIG = {
    # Tokens shorter than this are ignored when comparing answers
    "min_token_length": 3,

    # Similarity must be strictly greater than this to count as correct
    "correct_threshold": Fraction(3, 5),

    # Placeholder offsets applied on top of the overall score
    "confidence_bonus": 10,
    "communication_bonus": 5,

    "max_score": 100,
}

# ============================================================================
# Feedback Configuration
# ============================================================================

FEEDBACK_CONFIG = {
    # Lower bounds (inclusive) of the strong and encouraging tiers
    "strong_threshold": 80,
    "encouraging_threshold": 60,

    "narratives": {
        "strong": (
            "Excellent performance! You demonstrated strong technical "
            "knowledge and clear communication."
        ),
        "encouraging": (
            "Good effort! There are some areas for improvement, but "
            "you're on the right track."
        ),
        "improvement": (
            "Keep practicing! Focus on understanding core concepts and "
            "improving your problem-solving approach."
        ),
    },

    "passing_strengths": [
        "Clear communication",
        "Good problem-solving approach",
        "Technical knowledge",
    ],
    "passing_weaknesses": ["Minor optimization opportunities"],
    "failing_strengths": ["Willingness to learn", "Basic understanding"],
    "failing_weaknesses": [
        "Technical depth",
        "Problem-solving speed",
        "Code optimization",
    ],

    "improvement_tips": [
        "Practice more coding problems",
        "Review system design concepts",
        "Work on communication skills",
        "Study company-specific technologies",
    ],
}

# ============================================================================
# Progress Configuration
# ============================================================================

PROGRESS_CONFIG = {
    "default_weekly_goal": 3,
    "default_monthly_goal": 12,

    # Rolling windows used for goal tracking
    "weekly_window_days": 7,
    "monthly_window_days": 30,

    # Number of completed sessions listed with the progress overview
    "recent_sessions_limit": 10,

    # Accepted goal ranges
    "weekly_goal_range": (1, 50),
    "monthly_goal_range": (1, 200),
}

# ============================================================================
# Analytics Configuration
# ============================================================================

ANALYTICS_CONFIG = {
    "default_period_days": 30,

    # Number of recent "overall" feedback records mined for recommendations
    "recent_feedback_limit": 5,

    # Number of most frequent strengths/weaknesses/tips reported
    "common_items_limit": 5,

    # (lower bound inclusive, label), checked in order
    "strength_levels": [
        (0.8, "Strong"),
        (0.6, "Good"),
        (0.4, "Fair"),
    ],
    "fallback_strength_level": "Needs Improvement",
}

# ============================================================================
# Logging Configuration
# ============================================================================

LOGGING_CONFIG = {
    # Log level: "DEBUG", "INFO", "WARNING", "ERROR"
    "log_level": os.getenv("PRACTICE_COACH_LOG_LEVEL", "INFO"),

    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

