from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from services.twitch.models.helix import AppAccessToken, TwitchUser, stream_from_api
from shared.errors import AuthenticationError, UpstreamShapeError, WatcherError
from shared.logging.logger import get_logger
from shared.models.creator import LiveStreamDetails
from shared.utils.aio import join_all
from shared.utils.http import read_json, send

log = get_logger("twitch.helix", runtime="causewatch")


def chunked(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class TwitchHelixAPI:
    """
    Twitch Helix client (app access token flow).

    Responsibilities:
    - Acquire app access tokens via the client credentials grant
    - Look up users by login, batched to the 100-login upstream limit
    - Look up live streams by login, following pagination cursors

    The token is passed in by the caller; this class holds no token state.
    """

    TOKEN_URL = "https://id.twitch.tv/oauth2/token"
    USERS_URL = "https://api.twitch.tv/helix/users"
    STREAMS_URL = "https://api.twitch.tv/helix/streams"

    # Hard limit on ids/logins per Helix request
    MAX_PER_REQUEST = 100

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
    ):
        if not client_id or not client_secret:
            raise RuntimeError("Twitch client_id and client_secret are required")

        self._http = http_client
        self.client_id = client_id
        self._client_secret = client_secret

    # ------------------------------------------------------------
    # Token lifecycle
    # ------------------------------------------------------------

    async def authenticate(self) -> AppAccessToken:
        """
        Fetch a fresh app access token.

        Raises AuthenticationError on any failure.
        """
        try:
            response = await send(
                self._http,
                "POST",
                self.TOKEN_URL,
                context="twitch token",
                data={
                    "client_id": self.client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                },
            )
            token = AppAccessToken.from_response(
                read_json(response, context="twitch token")
            )
        except WatcherError as e:
            raise AuthenticationError(
                f"failed to acquire twitch app access token: {e}"
            ) from e

        log.info(f"[Twitch] Acquired app access token (expires_at={token.expires_at})")
        return token

    async def refresh_if_expired(self, token: AppAccessToken) -> AppAccessToken:
        """
        Lazily replace an expired token.

        A failed refresh is not fatal: the stale token is returned and used
        as-is for this cycle, and the refresh is attempted again next cycle.
        """
        if not token.is_expired():
            return token

        try:
            refreshed = await self.authenticate()
        except AuthenticationError as e:
            log.warning(f"[Twitch] Token refresh failed, retrying stale token: {e}")
            return token

        log.debug(f"[Twitch] Refreshed access token (expires_at={refreshed.expires_at})")
        return refreshed

    def _headers(self, token: AppAccessToken) -> Dict[str, str]:
        return {
            "Client-Id": self.client_id,
            "Authorization": f"Bearer {token.access_token}",
        }

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    async def get_users(
        self,
        token: AppAccessToken,
        logins: Sequence[str],
    ) -> List[TwitchUser]:
        """
        Look up users by login. Requests are split into batches of 100 and
        issued concurrently; results are concatenated in batch order.
        Unknown logins are simply absent from the result.
        """
        batches = chunked(list(logins), self.MAX_PER_REQUEST)
        if not batches:
            return []

        results = await join_all(
            *(self._get_users_batch(token, batch) for batch in batches)
        )

        users: List[TwitchUser] = []
        for batch_users in results:
            users.extend(batch_users)
        return users

    async def _get_users_batch(
        self,
        token: AppAccessToken,
        logins: Sequence[str],
    ) -> List[TwitchUser]:
        response = await send(
            self._http,
            "GET",
            self.USERS_URL,
            context="twitch users",
            params=[("login", login) for login in logins],
            headers=self._headers(token),
        )
        data = read_json(response, context="twitch users")
        return [TwitchUser.from_api(item) for item in _data_items(data, "twitch users")]

    # ------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------

    async def get_live_streams(
        self,
        token: AppAccessToken,
        logins: Sequence[str],
    ) -> Dict[str, LiveStreamDetails]:
        """
        Map login -> live stream for every login currently live.

        Logins absent from the result are offline.
        """
        batches = chunked(list(logins), self.MAX_PER_REQUEST)
        if not batches:
            return {}

        results = await join_all(
            *(self._get_streams_paginated(token, batch) for batch in batches)
        )

        streams: Dict[str, LiveStreamDetails] = {}
        for batch_streams in results:
            streams.update(batch_streams)
        return streams

    async def _get_streams_paginated(
        self,
        token: AppAccessToken,
        logins: Sequence[str],
    ) -> Dict[str, LiveStreamDetails]:
        base_params = [("user_login", login) for login in logins]
        base_params.append(("first", str(self.MAX_PER_REQUEST)))

        # First page failures propagate; there is nothing to fall back to.
        streams, cursor = await self._get_streams_page(token, base_params)

        all_streams: Dict[str, LiveStreamDetails] = dict(streams)
        pages = 1
        while cursor:
            try:
                streams, cursor = await self._get_streams_page(
                    token, base_params + [("after", cursor)]
                )
            except WatcherError as e:
                log.warning(
                    f"[Twitch] Pagination failed after {pages} page(s); "
                    f"keeping {len(all_streams)} stream(s): {e}"
                )
                break

            # Later pages win on key collision
            all_streams.update(streams)
            pages += 1

        return all_streams

    async def _get_streams_page(
        self,
        token: AppAccessToken,
        params: List[Tuple[str, str]],
    ) -> Tuple[List[Tuple[str, LiveStreamDetails]], Optional[str]]:
        response = await send(
            self._http,
            "GET",
            self.STREAMS_URL,
            context="twitch streams",
            params=params,
            headers=self._headers(token),
        )
        data = read_json(response, context="twitch streams")

        streams = []
        for item in _data_items(data, "twitch streams"):
            details = stream_from_api(item)
            streams.append((item["user_login"], details))

        pagination = data.get("pagination") or {}
        cursor = pagination.get("cursor") if isinstance(pagination, dict) else None
        return streams, cursor or None


def _data_items(data: Any, context: str) -> list:
    if not isinstance(data, dict) or not isinstance(data.get("data"), list):
        raise UpstreamShapeError(f"{context}: response has no 'data' array")
    return data["data"]
