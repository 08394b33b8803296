from typing import Optional, Tuple

import httpx

from services.tiltify.models.campaign import Campaign
from shared.errors import UpstreamShapeError
from shared.logging.logger import get_logger
from shared.utils.http import read_json, send

log = get_logger("tiltify.campaign", runtime="causewatch")


class TiltifyWatcher:
    """
    Revalidating cache for a single Tiltify campaign.

    Each call first asks the upstream whether the cached copy is still
    current (HEAD + If-None-Match). The full body is only downloaded when it
    is not, or when nothing has been cached yet.

    The cache is owned by this object and only mutated by get_campaign(),
    which the orchestrator never calls concurrently with itself.
    """

    CAMPAIGN_URL = "https://tiltify.com/api/v3/campaigns/{campaign_id}"

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        api_key: str,
        campaign_id: int,
    ):
        if not api_key:
            raise RuntimeError("Tiltify api_key is required")

        self._http = http_client
        self._api_key = api_key
        self.campaign_id = campaign_id
        self._cache: Optional[Tuple[str, Campaign]] = None

    @property
    def url(self) -> str:
        return self.CAMPAIGN_URL.format(campaign_id=self.campaign_id)

    @property
    def cached_etag(self) -> Optional[str]:
        return self._cache[0] if self._cache else None

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def get_campaign(self) -> Campaign:
        if self._cache is not None:
            etag, campaign = self._cache
            if await self._is_current(etag):
                log.debug(f"[Tiltify] Campaign {self.campaign_id} unchanged (etag={etag})")
                return campaign

        return await self._fetch()

    async def _is_current(self, etag: str) -> bool:
        headers = self._headers()
        headers["If-None-Match"] = etag

        response = await send(
            self._http,
            "HEAD",
            self.url,
            context="tiltify campaign revalidate",
            allow_status=(304,),
            headers=headers,
        )
        if response.status_code == 304:
            return True

        # Some edges answer 200 to a conditional HEAD; compare by hand.
        return response.headers.get("etag") == etag

    async def _fetch(self) -> Campaign:
        response = await send(
            self._http,
            "GET",
            self.url,
            context="tiltify campaign",
            headers=self._headers(),
        )

        etag = response.headers.get("etag")
        if not etag:
            raise UpstreamShapeError("tiltify campaign: response has no ETag header")

        body = read_json(response, context="tiltify campaign")
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise UpstreamShapeError(
                "tiltify campaign: response has no 'data' object",
                payload=response.text,
            )

        campaign = Campaign.from_api(body["data"])
        self._cache = (etag, campaign)
        log.info(
            f"[Tiltify] Campaign {campaign.id} refreshed: "
            f"{campaign.total_amount_raised} / {campaign.fundraiser_goal_amount}"
        )
        return campaign
