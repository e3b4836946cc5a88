"""Runtime configuration read from the environment (and an optional .env file)."""

import os
from dotenv import load_dotenv

load_dotenv()


def _database_url() -> str:
    url = os.getenv('DATABASE_URL')
    if url:
        return url
    # Older deployments only set a SQLite file path
    return f"sqlite:///{os.getenv('DATABASE_PATH', 'study_planner.db')}"


DATABASE_URL = _database_url()
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
PLANNER_HOST = os.getenv('PLANNER_HOST', '0.0.0.0')
PLANNER_PORT = int(os.getenv('PLANNER_PORT', '5050'))
NOTIFICATION_WINDOW_MINUTES = int(os.getenv('NOTIFICATION_WINDOW_MINUTES', '10'))
