from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from shared.errors import UpstreamShapeError
from shared.models.creator import Creator, LiveStreamDetails, StreamingService
from shared.utils.timestamps import parse_rfc3339


def watch_url(video_id: str) -> str:
    return f"https://youtube.com/watch?v={video_id}"


@dataclass(frozen=True)
class YouTubeChannel:
    """
    Channel identity resolved from the Data API `channels` snippet.
    """

    channel_id: str
    title: str
    custom_url: str
    icon_url: str

    @classmethod
    def from_api(cls, channel_id: str, item: Dict[str, Any]) -> "YouTubeChannel":
        try:
            snippet = item["snippet"]
            return cls(
                channel_id=channel_id,
                title=snippet["title"],
                custom_url=snippet["customUrl"],
                icon_url=snippet["thumbnails"]["default"]["url"],
            )
        except (KeyError, TypeError) as e:
            raise UpstreamShapeError(
                f"channel {channel_id} snippet is missing {e!s}"
            ) from e

    def to_creator(self, stream: Optional[LiveStreamDetails] = None) -> Creator:
        return Creator(
            id=self.channel_id,
            display_name=self.title,
            handle=self.custom_url,
            href=f"https://youtube.com/{self.custom_url}",
            icon_url=self.icon_url,
            service=StreamingService.YOUTUBE,
            stream=stream,
        )


@dataclass(frozen=True)
class YouTubeVideo:
    """
    Lightweight metadata carrier for a (possibly) live YouTube video.
    """

    video_id: str
    title: Optional[str] = None
    status: Optional[str] = None  # liveBroadcastContent: "live", "upcoming", "none"
    actual_start: Optional[str] = None
    concurrent_viewers: Optional[str] = None

    @classmethod
    def from_api(cls, video_id: str, item: Dict[str, Any]) -> "YouTubeVideo":
        snippet = item.get("snippet")
        details = item.get("liveStreamingDetails")
        if not isinstance(snippet, dict):
            raise UpstreamShapeError(f"video {video_id} has no snippet part")
        if not isinstance(details, dict):
            raise UpstreamShapeError(f"video {video_id} has no liveStreamingDetails part")

        return cls(
            video_id=video_id,
            title=snippet.get("title"),
            status=snippet.get("liveBroadcastContent"),
            actual_start=details.get("actualStartTime"),
            concurrent_viewers=details.get("concurrentViewers"),
        )

    def is_live(self) -> bool:
        # Exact match only: "upcoming" and "none" are offline.
        return self.status == "live"

    def to_details(self) -> LiveStreamDetails:
        if self.title is None:
            raise UpstreamShapeError(f"live video {self.video_id} has no title")
        if not self.actual_start:
            raise UpstreamShapeError(f"live video {self.video_id} has no actualStartTime")

        try:
            start_time: datetime = parse_rfc3339(self.actual_start)
            viewers = (
                int(self.concurrent_viewers)
                if self.concurrent_viewers is not None
                else None
            )
        except ValueError as e:
            raise UpstreamShapeError(f"live video {self.video_id}: {e}") from e

        return LiveStreamDetails(
            href=watch_url(self.video_id),
            title=self.title,
            start_time=start_time,
            viewers=viewers,
        )
