from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_REFRESH_PERIOD = 600.0
DEFAULT_CAMPAIGN_ID = 468510


@dataclass(frozen=True)
class WatcherEnvironment:
    # -------------------------------------------------
    # CREDENTIALS (from .env / process environment)
    # -------------------------------------------------
    twitch_client_id: str
    twitch_client_secret: str = field(repr=False)
    youtube_api_key: str = field(repr=False)
    tiltify_api_key: str = field(repr=False)


@dataclass(frozen=True)
class ExportConfig:
    enabled: bool = False
    base_dir: Path = Path("shared/state")
    publish_root: Optional[Path] = None


@dataclass(frozen=True)
class WatcherConfig:
    """
    Everything the watcher needs, assembled once at startup and passed down
    explicitly. Nothing here is mutated after load.
    """

    env: WatcherEnvironment
    twitch_handles: Tuple[str, ...] = ()
    youtube_handles: Tuple[str, ...] = ()
    campaign_id: int = DEFAULT_CAMPAIGN_ID
    refresh_period: float = DEFAULT_REFRESH_PERIOD
    http_timeout: float = 15.0
    youtube_daily_quota: Optional[int] = None
    export: ExportConfig = field(default_factory=ExportConfig)

    def __post_init__(self):
        if self.refresh_period <= 0:
            raise ValueError("refresh_period must be positive")
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")
