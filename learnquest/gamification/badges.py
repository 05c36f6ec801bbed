"""
Badge Registry

Keyed collection of awarded badges. Badges arrive from achievements,
level-up rewards and challenge completions; the registry has no rules of
its own. Awarding an id that is already present keeps the original award.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

from learnquest.models.gamification import BadgeInstance

logger = logging.getLogger(__name__)


class BadgeRegistry:
    """Badges awarded to one user, at most one per id"""

    def __init__(self):
        self._badges: Dict[str, BadgeInstance] = {}

    def award(
        self,
        badge: Union[BadgeInstance, Mapping[str, Any]],
        now: datetime,
    ) -> Tuple[BadgeInstance, bool]:
        """
        Add a badge unless its id is already awarded

        Args:
            badge: Badge fields (id, name, description, icon)
            now: Award time used when the badge carries none

        Returns:
            (badge instance, True if newly awarded)
        """
        data = badge.model_dump() if isinstance(badge, BadgeInstance) else dict(badge)
        badge_id = data["id"]

        existing = self._badges.get(badge_id)
        if existing is not None:
            return existing, False

        data.setdefault("name", badge_id.replace("_", " ").title())
        if not data.get("awarded_at"):
            data["awarded_at"] = now
        instance = BadgeInstance.model_validate(data)
        self._badges[badge_id] = instance
        return instance, True

    def get(self, badge_id: str) -> Optional[BadgeInstance]:
        return self._badges.get(badge_id)

    def has(self, badge_id: str) -> bool:
        return badge_id in self._badges

    def list(self) -> List[BadgeInstance]:
        """Badges in award order"""
        return list(self._badges.values())

    def load(self, records: Iterable[Mapping[str, Any]]) -> None:
        for record in records:
            try:
                instance = BadgeInstance.model_validate(record)
            except ValueError as e:
                logger.warning(f"Skipping unreadable stored badge {record!r}: {e}")
                continue
            self._badges.setdefault(instance.id, instance)

    def dump(self) -> List[Dict[str, Any]]:
        return [b.model_dump(mode="json") for b in self._badges.values()]


def format_badges_display(badges: List[BadgeInstance]) -> str:
    """Format badge shelf for display"""
    if not badges:
        return "🏅 No badges yet. Complete challenges and level up to earn some!"

    lines = [f"🏅 YOUR BADGES ({len(badges)})"]
    for badge in badges:
        lines.append(f"{badge.icon} {badge.name}")
    return "\n".join(lines)
