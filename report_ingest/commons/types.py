from typing import Optional

from pydantic import BaseModel
from sqlalchemy.engine import URL


class DatabaseCfg(BaseModel):
    url: Optional[str] = None  # si viene, gana sobre host/user/...
    host: str = "localhost"
    user: str = ""
    password: str = ""
    name: str = ""
    port: int = 5432
    sslmode: str = "require"
    pool_size: int = 2
    max_overflow: int = 0

    def sqlalchemy_url(self):
        if self.url:
            return self.url
        return URL.create(
            "postgresql+psycopg2",
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name or None,
            query={"sslmode": self.sslmode} if self.sslmode else {},
        )


class ModelCfg(BaseModel):
    endpoint: str = ""
    api_key: str = ""
    deployment: str = "gpt-4o-mini"
    api_version: str = "2025-01-01-preview"


class MailCfg(BaseModel):
    host: str = "smtp.gmail.com"
    port: int = 587
    user: str = ""
    password: str = ""
    sender_name: str = "DiagNexus"
    starttls: bool = True


class StorageCfg(BaseModel):
    region: Optional[str] = None


class LoggingCfg(BaseModel):
    level: str = "INFO"
    root: Optional[str] = None


class Settings(BaseModel):
    database: DatabaseCfg = DatabaseCfg()
    model: ModelCfg = ModelCfg()
    mail: MailCfg = MailCfg()
    storage: StorageCfg = StorageCfg()
    logging: LoggingCfg = LoggingCfg()
