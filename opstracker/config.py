import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./opstracker.db")
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = os.getenv("DEBUG", "True").lower() == "true"
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "*")
    trusted_hosts: str = os.getenv("TRUSTED_HOSTS", "localhost")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # First-run initialization
    mitre_attack_path: str = os.getenv(
        "MITRE_ATTACK_PATH",
        os.path.join(os.path.dirname(__file__), "data", "enterprise-attack.json"),
    )
    initial_admin_id: str = os.getenv("INITIAL_ADMIN_ID", "admin")
    initial_admin_name: str = os.getenv("INITIAL_ADMIN_NAME", "Administrator")
    initial_admin_email: str = os.getenv("INITIAL_ADMIN_EMAIL", "admin@localhost")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
