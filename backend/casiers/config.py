"""
Configuration centrale de l'application via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Base de données (roster serveur + snapshot du registre)
    DATABASE_URL: str = "sqlite:///./casiers.db"

    # Registre des casiers
    SNAPSHOT_KEY: str = "casiers-data"
    HISTORY_LIMIT: int = 100
    SEED_LOCKERS: bool = True

    # Import CSV
    MAX_FILE_SIZE_MB: int = 5

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
