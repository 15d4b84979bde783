from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    openai_api_key: Optional[str] = None
    grok_api_key: Optional[str] = None
    model_openai: str = "gpt-4o-mini"
    model_grok: str = "grok-2"
    grok_base_url: str = "https://api.x.ai/v1"
    report_base: str = "https://ethicaltruth.app/r"
    strict_x_url: bool = False
    http_timeout: float = 10.0
    llm_timeout: float = 60.0
    database_url: str = "sqlite:///./ethicaltruth.db"
    cors_origins: str = "*"
    log_level: str = "INFO"
    log_llm_calls: bool = True
    log_dir: str = "./logs"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

settings = Settings()
