from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """
    Centralized settings for the relationship graph builder. Pydantic's BaseSettings
    will automatically load these from environment variables or a .env file.
    """
    # --- Neo4j Database Credentials (only needed by Neo4jCompanyStore) ---
    NEO4J_URI: Optional[str] = Field(None, description="Bolt/neo4j URI of the company store.")
    NEO4J_USERNAME: Optional[str] = Field(None, description="Username for the company store.")
    NEO4J_PASSWORD: Optional[str] = Field(None, description="Password for the company store.")
    NEO4J_DATABASE: Optional[str] = Field(None, description="Database name; the server default when unset.")

    # --- Entity Classifier ---
    ENTITY_LISTS_PATH: Optional[str] = Field(None, description="JSON file overriding the classifier keyword tables.")

    # --- Name Matching Parameters ---
    NAME_MIN_MATCH_LENGTH: int = Field(3, description="Minimum length for substring company-name matches.")
    FUZZY_MIN_SHARED_TOKENS: int = Field(2, description="Shared name tokens required to treat two names as one person.")

    # --- Logging ---
    LOG_LEVEL: str = Field("INFO", description="Log level for relgraph loggers.")

    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')


@lru_cache
def get_settings() -> Settings:
    return Settings()
