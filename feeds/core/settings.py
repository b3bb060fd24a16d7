from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    app_env: str
    db_path: str
    caption_languages: tuple[str, ...]
    ytdlp_bin: str
    caption_timeout: float
    fetch_timeout: float
    feed_fetch_retries: int
    podcast_sources: tuple[str, ...]
    cors_origins: tuple[str, ...]

    @staticmethod
    def from_env() -> "Settings":
        def _f(name: str, default: str) -> float:
            return float(os.getenv(name, default).strip())

        def _i(name: str, default: str) -> int:
            return int(os.getenv(name, default).strip())

        def _list(name: str, default: str) -> tuple[str, ...]:
            raw = os.getenv(name, default)
            return tuple(part.strip() for part in raw.split(",") if part.strip())

        return Settings(
            app_env=os.getenv("APP_ENV", "dev").strip(),
            db_path=os.getenv("DB_PATH", "/app/_local/data/feeds.db").strip(),
            caption_languages=_list("CAPTION_LANGUAGES", "en,no"),
            ytdlp_bin=os.getenv("YTDLP_BIN", "yt-dlp").strip(),
            caption_timeout=_f("CAPTION_TIMEOUT", "60"),
            fetch_timeout=_f("FETCH_TIMEOUT", "30"),
            feed_fetch_retries=_i("FEED_FETCH_RETRIES", "2"),
            podcast_sources=_list("PODCAST_SOURCES", "podcast,latent space,lex fridman,huberman"),
            cors_origins=_list("CORS_ORIGINS", "*"),
        )
