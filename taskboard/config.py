from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"

    # "memory" or "sql"
    STORE_BACKEND: str = "sql"

    # Security
    SECRET_KEY: str = "your-secret-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # Transports
    REST_HOST: str = "0.0.0.0"
    REST_PORT: int = 5001
    GRPC_HOST: str = "0.0.0.0"
    GRPC_PORT: int = 50051

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
