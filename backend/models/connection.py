"""Pydantic schemas for database connection requests."""
from typing import Optional, Literal
from pydantic import BaseModel, Field

from config import Settings


_DRIVERS = {
    "postgresql": "postgresql+psycopg2",
    "mysql": "mysql+pymysql",
    "mssql": "mssql+pyodbc",
}


class ConnectionRequest(BaseModel):
    db_type: Literal["sqlite", "postgresql", "mysql", "mssql"] = Field(..., description="Database engine type")

    # Explicit SQLAlchemy URL, overrides everything below
    url: Optional[str] = Field(None, description="Full SQLAlchemy database URL")

    # SQLite only
    file_path: Optional[str] = Field(None, description="Absolute path to .db file (SQLite only)")

    # Server databases
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(5432, description="Database port")
    database: Optional[str] = Field(None, description="Database name")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")

    db_schema: Optional[str] = Field(None, description="Schema to introspect (defaults per engine)")

    def get_sqlalchemy_url(self) -> str:
        if self.url:
            return self.url
        if self.db_type == "sqlite":
            return f"sqlite:///{self.file_path}"
        return (
            f"{_DRIVERS[self.db_type]}://{self.username}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @classmethod
    def from_settings(cls, s: Settings) -> "ConnectionRequest":
        db_type = s.DB_TYPE
        if s.DATABASE_URL:
            db_type = _db_type_from_url(s.DATABASE_URL)
        return cls(
            db_type=db_type,
            url=s.DATABASE_URL or None,
            file_path=s.DB_FILE_PATH or None,
            host=s.DB_HOST,
            port=s.DB_PORT,
            database=s.DB_NAME,
            username=s.DB_USER,
            password=s.DB_PASSWORD,
            db_schema=s.DB_SCHEMA or None,
        )


def _db_type_from_url(url: str) -> str:
    scheme = url.split(":", 1)[0].split("+", 1)[0].lower()
    if scheme in ("postgres", "postgresql"):
        return "postgresql"
    if scheme in ("mysql", "mariadb"):
        return "mysql"
    if scheme == "mssql":
        return "mssql"
    return "sqlite"
