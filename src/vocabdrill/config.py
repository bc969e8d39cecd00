"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Learning rules
MAX_LEVEL = 100
LEVEL_CHANGE_COOLDOWN = timedelta(hours=24)  # minimum time between two demotions
ACCENT_TOLERANCE_MAX_LEVEL = 50  # accents are forgiven below this level
VERB_OPTION_DISTRACTORS = 2

ARTICLE_ALTERNATIVES = {
    "el": "un",
    "un": "el",
    "la": "una",
    "una": "la",
    "los": "unos",
    "unos": "los",
    "las": "unas",
    "unas": "las",
}

TENSES = ["present", "past", "future"]
PERSONS = ["yo", "tú", "él/ella", "nosotros", "vosotros", "ellos/ellas"]


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        EXPORTS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    exports_dir: Path = EXPORTS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabdrill.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class LearningSettings:
    """Learning session settings."""
    pool_size: int = int(os.getenv("POOL_SIZE", "20"))
    required_streak: int = int(os.getenv("REQUIRED_STREAK", "2"))
    auto_add_verbs: int = int(os.getenv("AUTO_ADD_VERBS", "1"))
    auto_add_adjectives: int = int(os.getenv("AUTO_ADD_ADJECTIVES", "2"))
    auto_add_nouns: int = int(os.getenv("AUTO_ADD_NOUNS", "4"))
    intro_delay: float = float(os.getenv("INTRO_DELAY_SECONDS", "4.0"))
    feedback_delay_correct: float = float(os.getenv("FEEDBACK_DELAY_CORRECT_SECONDS", "1.5"))
    feedback_delay_wrong: float = float(os.getenv("FEEDBACK_DELAY_WRONG_SECONDS", "2.5"))

    def validate(self) -> None:
        """Validate learning settings and raise ValueError if invalid."""
        if self.pool_size < 1:
            raise ValueError("POOL_SIZE must be positive")

        if self.required_streak < 1:
            raise ValueError("REQUIRED_STREAK must be positive")

        for name in ("auto_add_verbs", "auto_add_adjectives", "auto_add_nouns"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name.upper()} cannot be negative")

        if min(self.intro_delay, self.feedback_delay_correct, self.feedback_delay_wrong) < 0:
            raise ValueError("Session delays cannot be negative")


@dataclass
class ContentSettings:
    """Content generation settings."""
    api_key: str = os.getenv("OPENAI_API_KEY", "")
    model: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    source_language: str = os.getenv("SOURCE_LANGUAGE", "Polish")
    target_language: str = os.getenv("TARGET_LANGUAGE", "Spanish")
    temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.3"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_content_settings() -> ContentSettings:
    """Get content settings."""
    return ContentSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    content: ContentSettings = field(default_factory=get_content_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        self.learning.validate()

        if self.monitoring.port < 0:
            raise ValueError("METRICS_PORT cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
