"""Configuration loader for Paper Intake with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL", "sqlite:///data/database.sqlite"),
    "port": int(os.getenv("PORT", "8000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "environment": os.getenv("ENVIRONMENT", "development"),
    "db_echo": os.getenv("DEBUG", "false").lower() == "true",
}
