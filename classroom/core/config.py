import os
from datetime import timedelta

# DEV ONLY: fallback secret. Set SECRET_KEY in the environment outside local dev.
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE = timedelta(minutes=60)

DATABASE_URL = os.getenv("DATABASE_URL")  # None -> sqlite file next to the package

# Grading policy
GRADE_PRECISION = 2  # decimal places kept on penalty-adjusted grades
DEFAULT_MAX_POINTS = 100
DEFAULT_MAX_RESUBMISSIONS = 3
DEFAULT_QUIZ_ATTEMPTS = 1
