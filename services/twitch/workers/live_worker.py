from typing import Dict, Optional, Sequence

import httpx

from services.base import CreatorSource
from services.twitch.api.helix import TwitchHelixAPI
from services.twitch.models.helix import AppAccessToken
from shared.logging.logger import get_logger
from shared.models.creator import Creator, LiveStreamDetails, StreamingService

log = get_logger("twitch.live_worker", runtime="causewatch")


class TwitchLiveWatcher(CreatorSource):
    """
    Live status watcher for the Twitch roster.

    Responsibilities:
    - Own the app access token (acquired once at setup, refreshed lazily)
    - Resolve roster logins into Creator objects
    - Attach live stream details to creators that are currently live
    """

    service = StreamingService.TWITCH

    def __init__(
        self,
        *,
        api: TwitchHelixAPI,
        token: AppAccessToken,
        handles: Sequence[str],
    ):
        # Helix logins are lowercase; users and streams come back keyed that way
        super().__init__([handle.strip().lower() for handle in handles])
        self._api = api
        self._token = token

    @classmethod
    async def setup(
        cls,
        *,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        handles: Sequence[str],
    ) -> "TwitchLiveWatcher":
        """
        Build a watcher with a freshly acquired token.

        Raises AuthenticationError if the initial token cannot be acquired;
        there is no fallback identity, so callers treat this as fatal.
        """
        api = TwitchHelixAPI(
            http_client=http_client,
            client_id=client_id,
            client_secret=client_secret,
        )
        token = await api.authenticate()

        log.info(f"[Twitch] Watching {len(handles)} creator(s): {sorted(handles)}")
        return cls(api=api, token=token, handles=handles)

    @property
    def token(self) -> AppAccessToken:
        return self._token

    # ------------------------------------------------------------

    async def prepare(self) -> None:
        self._token = await self._api.refresh_if_expired(self._token)

    async def fetch_creators(self, handles: Sequence[str]) -> Dict[str, Creator]:
        users = await self._api.get_users(self._token, handles)

        missing = set(handles) - {user.login for user in users}
        if missing:
            log.debug(f"[Twitch] Unknown logins omitted: {sorted(missing)}")

        return {user.login: user.to_creator() for user in users}

    async def fetch_live_status(
        self, handles: Sequence[str]
    ) -> Dict[str, Optional[LiveStreamDetails]]:
        streams = await self._api.get_live_streams(self._token, handles)
        log.debug(f"[Twitch] {len(streams)} of {len(handles)} creator(s) live")
        return streams
