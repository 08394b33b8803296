from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from shared.errors import UpstreamShapeError
from shared.models.creator import Creator, LiveStreamDetails, StreamingService
from shared.utils.timestamps import parse_rfc3339


def channel_url(login: str) -> str:
    return f"https://twitch.tv/{login}"


@dataclass(frozen=True)
class AppAccessToken:
    """
    Twitch app access token (client credentials grant).

    Owned by the Twitch watcher only. The token value is kept out of repr so
    it never ends up in logs.
    """

    access_token: str = field(repr=False)
    expires_at: datetime

    @classmethod
    def from_response(
        cls,
        payload: Dict[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> "AppAccessToken":
        now = now or datetime.now(timezone.utc)
        try:
            token = payload["access_token"]
            expires_in = int(payload["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamShapeError(f"malformed twitch token response: {e!r}") from e

        if not isinstance(token, str) or not token:
            raise UpstreamShapeError("twitch token response has an empty access_token")

        return cls(access_token=token, expires_at=now + timedelta(seconds=expires_in))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


@dataclass(frozen=True)
class TwitchUser:
    id: str
    login: str
    display_name: str
    profile_image_url: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "TwitchUser":
        try:
            user = cls(
                id=str(item["id"]),
                login=item["login"],
                display_name=item["display_name"],
                profile_image_url=item.get("profile_image_url") or "",
            )
        except (KeyError, TypeError) as e:
            raise UpstreamShapeError(f"malformed twitch user record: {e!r}") from e

        if not user.profile_image_url:
            raise UpstreamShapeError(
                f"twitch user {user.login} has no profile_image_url"
            )
        return user

    def to_creator(self, stream: Optional[LiveStreamDetails] = None) -> Creator:
        return Creator(
            id=self.id,
            display_name=self.display_name,
            handle=self.login,
            href=channel_url(self.login),
            icon_url=self.profile_image_url,
            service=StreamingService.TWITCH,
            stream=stream,
        )


def stream_from_api(item: Dict[str, Any]) -> LiveStreamDetails:
    """Normalize one /helix/streams record."""
    try:
        login = item["user_login"]
        viewers = item.get("viewer_count")
        return LiveStreamDetails(
            href=channel_url(login),
            title=item.get("title") or "",
            start_time=parse_rfc3339(item["started_at"]),
            viewers=int(viewers) if viewers is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamShapeError(f"malformed twitch stream record: {e!r}") from e
