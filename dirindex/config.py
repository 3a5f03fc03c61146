from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'Directory Index'
    app_host: str = '0.0.0.0'
    app_port: int = 8080
    browse_root: str = '.'
    mount_path: str = Field(default='/browse', pattern=r'^(/[^/]+)*$')
    max_symlink_hops: int = Field(default=10, ge=0, le=40)
    log_level: str = 'info'


settings = Settings()
