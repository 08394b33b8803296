from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from shared.errors import UpstreamShapeError
from shared.utils.timestamps import from_js_timestamp, to_rfc3339


@dataclass(frozen=True)
class TiltifyAvatar:
    src: str
    alt: str
    width: int
    height: int

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "TiltifyAvatar":
        return cls(
            src=raw["src"],
            alt=raw["alt"],
            width=int(raw["width"]),
            height=int(raw["height"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "alt": self.alt, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class TiltifyOwner:
    """Campaign user or team; both carry the same public fields."""

    id: int
    name: str
    slug: str
    url: str
    avatar: TiltifyAvatar

    @classmethod
    def from_api(cls, raw: Dict[str, Any], *, name_key: str) -> "TiltifyOwner":
        return cls(
            id=int(raw["id"]),
            name=raw[name_key],
            slug=raw["slug"],
            url=raw["url"],
            avatar=TiltifyAvatar.from_api(raw["avatar"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "url": self.url,
            "avatar": self.avatar.to_dict(),
        }


@dataclass(frozen=True, eq=False)
class Campaign:
    """
    Tiltify fundraising campaign.

    Money amounts are floats: they are small and only ever displayed, never
    used for arithmetic. Two campaigns are equal when their ids are equal.
    """

    id: int
    name: str
    slug: str
    starts_at: datetime
    ends_at: Optional[datetime]
    description: str
    avatar: TiltifyAvatar
    cause_id: int

    fundraiser_goal_amount: float
    original_fundraiser_goal: float
    amount_raised: float
    supporting_amount_raised: float
    total_amount_raised: float

    supportable: bool

    user: TiltifyOwner
    team: TiltifyOwner

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Campaign):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Campaign":
        """Parse the camelCase `data` object of a v3 campaign response."""
        try:
            ends_at = data.get("endsAt")
            return cls(
                id=int(data["id"]),
                name=data["name"],
                slug=data["slug"],
                starts_at=from_js_timestamp(data["startsAt"]),
                ends_at=from_js_timestamp(ends_at) if ends_at is not None else None,
                description=data["description"],
                avatar=TiltifyAvatar.from_api(data["avatar"]),
                cause_id=int(data["causeId"]),
                fundraiser_goal_amount=float(data["fundraiserGoalAmount"]),
                original_fundraiser_goal=float(data["originalFundraiserGoal"]),
                amount_raised=float(data["amountRaised"]),
                supporting_amount_raised=float(data["supportingAmountRaised"]),
                total_amount_raised=float(data["totalAmountRaised"]),
                supportable=bool(data["supportable"]),
                user=TiltifyOwner.from_api(data["user"], name_key="username"),
                team=TiltifyOwner.from_api(data["team"], name_key="name"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamShapeError(f"incompatible tiltify campaign: {e!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "starts_at": to_rfc3339(self.starts_at),
            "ends_at": to_rfc3339(self.ends_at),
            "description": self.description,
            "avatar": self.avatar.to_dict(),
            "cause_id": self.cause_id,
            "fundraiser_goal_amount": self.fundraiser_goal_amount,
            "original_fundraiser_goal": self.original_fundraiser_goal,
            "amount_raised": self.amount_raised,
            "supporting_amount_raised": self.supporting_amount_raised,
            "total_amount_raised": self.total_amount_raised,
            "supportable": self.supportable,
            "user": self.user.to_dict(),
            "team": self.team.to_dict(),
        }
