"""Configuration loader for the Library Q&A engine."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# The ten interface languages offered by the dashboard.
DEFAULT_LANGUAGES: list[str] = ["en", "es", "fr", "de", "it", "pt", "nl", "he", "ru", "ar"]


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Library Q&A"
    version: str = "1.0.0"
    log_level: str = "INFO"


class CorpusConfig(BaseModel):
    """Location of the book catalog."""

    catalog_path: str = "./data/catalog.yaml"


class RetrievalConfig(BaseModel):
    """Retrieval and answer composition configuration."""

    top_k: int = 5
    min_score: float = 0.05
    max_supporting: int = 2
    excerpt_chars: int = 160


class TranslationConfig(BaseModel):
    """Translation boundary configuration."""

    backend: str = "dictionary"  # "dictionary", "libretranslate", "none"
    timeout_seconds: float = 5.0
    supported_languages: list[str] = Field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    dictionary_path: str = "./data/phrasebook.yaml"
    libretranslate_url: str = "http://localhost:5000"
    cache_path: str | None = None


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)

    # Loaded from environment
    libretranslate_api_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    config.libretranslate_api_key = os.getenv("LIBRETRANSLATE_API_KEY")

    return config
