"""Unit tests for Badge Registry (learnquest/gamification/badges.py)"""
from datetime import datetime, timedelta, timezone

from learnquest.gamification.badges import BadgeRegistry, format_badges_display
from learnquest.models.gamification import BadgeInstance


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_award_new_badge():
    registry = BadgeRegistry()

    badge, created = registry.award({"id": "explorer", "name": "Explorer", "icon": "🗺️"}, NOW)

    assert created is True
    assert badge.id == "explorer"
    assert badge.awarded_at == NOW
    assert registry.has("explorer")


def test_first_award_wins():
    """Test re-awarding keeps the original award time and fields"""
    registry = BadgeRegistry()
    registry.award({"id": "explorer", "name": "Explorer"}, NOW)

    badge, created = registry.award({"id": "explorer", "name": "Renamed"}, NOW + timedelta(days=3))

    assert created is False
    assert badge.name == "Explorer"
    assert badge.awarded_at == NOW
    assert len(registry.list()) == 1


def test_default_name_from_id():
    registry = BadgeRegistry()

    badge, _ = registry.award({"id": "daily_champion"}, NOW)

    assert badge.name == "Daily Champion"
    assert badge.icon == "🏅"


def test_award_accepts_instance():
    registry = BadgeRegistry()
    instance = BadgeInstance(id="perfectionist", name="Perfectionist", awarded_at=NOW - timedelta(days=1))

    badge, created = registry.award(instance, NOW)

    assert created is True
    assert badge.awarded_at == NOW - timedelta(days=1)


def test_list_in_award_order():
    registry = BadgeRegistry()
    for badge_id in ("novice_learner", "explorer", "perfectionist"):
        registry.award({"id": badge_id}, NOW)

    assert [b.id for b in registry.list()] == ["novice_learner", "explorer", "perfectionist"]


def test_load_restores_badges():
    registry = BadgeRegistry()

    registry.load([
        {"id": "explorer", "name": "Explorer", "awarded_at": "2024-03-01T09:00:00+00:00"},
        {"id": "broken"},
    ])

    assert registry.has("explorer")
    assert not registry.has("broken")
    assert registry.get("explorer").awarded_at.day == 1


def test_format_badges_display():
    registry = BadgeRegistry()
    assert "No badges yet" in format_badges_display(registry.list())

    registry.award({"id": "explorer", "name": "Explorer", "icon": "🗺️"}, NOW)
    display = format_badges_display(registry.list())

    assert "YOUR BADGES (1)" in display
    assert "🗺️ Explorer" in display
