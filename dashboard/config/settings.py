from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    supabase_url: str = ""
    supabase_key: str = ""

    # False when running somewhere without a persistent client-side store
    # (server-side rendering, batch jobs). Reads then return nothing and
    # writes become no-ops.
    persistent_storage: bool = True
    local_storage_path: Path = Path.home() / ".ifood-dashboard" / "storage.json"

    user_storage_key: str = "ifood-user"
    analyses_key_prefix: str = "ifood-analyses"
    users_table: str = "Usuario"
    analyses_table: str = "historicodeanalise"

    cors_origins: str = "http://localhost:3000"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url) and bool(self.supabase_key)

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
