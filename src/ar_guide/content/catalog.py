"""
Content Catalog - education lessons and game modes keyed by id.

Catalogs are supplied from YAML. A small built-in catalog is used when
none is configured.

YAML format:
    education:
      - id: basics-1
        title: Waste Sorting Basics
        steps:
          - id: step-1
            instruction: Point your camera at a plastic bottle
            hints: [Look for the recycling symbol]
    games:
      - id: speed-sort-1
        name: Speed Sorting Challenge
        type: speed_sorting
        rules: [Sort items quickly and accurately]
        scoring: {basePoints: 10, penaltyForErrors: 5}
"""

import logging
from pathlib import Path

import yaml

from ..errors import ContentNotFound
from ..models import EducationContent, GameMode

logger = logging.getLogger(__name__)

DEFAULT_CATALOG = {
    "education": [
        {
            "id": "basics-1",
            "title": "Waste Sorting Basics",
            "description": "Learn the fundamentals of proper waste sorting",
            "category": "basics",
            "difficulty": "beginner",
            "steps": [
                {
                    "id": "step-1",
                    "instruction": "Point your camera at a plastic bottle",
                    "visualCue": "Look for plastic recycling symbol",
                    "interactionRequired": True,
                    "hints": [
                        "Look for the recycling symbol",
                        "Check the bottom of the bottle",
                    ],
                },
            ],
            "estimatedTime": 300,
            "points": 50,
        },
    ],
    "games": [
        {
            "id": "speed-sort-1",
            "name": "Speed Sorting Challenge",
            "description": "Sort as many items as possible in 60 seconds",
            "type": "speed_sorting",
            "difficulty": "medium",
            "rules": ["Sort items quickly and accurately", "Wrong sorts lose points"],
            "scoring": {
                "basePoints": 10,
                "timeBonus": True,
                "accuracyMultiplier": 1.5,
                "penaltyForErrors": 5,
            },
            "leaderboard": True,
        },
    ],
}


class ContentCatalog:
    """Read-only lookup of education content and game modes."""

    def __init__(
        self,
        education: list[EducationContent] | None = None,
        games: list[GameMode] | None = None,
    ):
        self._education = {c.id: c for c in education or []}
        self._games = {g.id: g for g in games or []}

    @classmethod
    def from_dict(cls, data: dict) -> "ContentCatalog":
        return cls(
            education=[EducationContent.from_dict(c) for c in data.get("education") or []],
            games=[GameMode.from_dict(g) for g in data.get("games") or []],
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ContentCatalog":
        """Load catalog from YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        catalog = cls.from_dict(data)
        logger.info(
            f"Content catalog loaded from {path}: "
            f"{len(catalog._education)} lesson(s), {len(catalog._games)} game(s)"
        )
        return catalog

    @classmethod
    def default(cls) -> "ContentCatalog":
        return cls.from_dict(DEFAULT_CATALOG)

    def education(self, content_id: str) -> EducationContent:
        """
        Raises:
            ContentNotFound: If no lesson has this id
        """
        try:
            return self._education[content_id]
        except KeyError:
            raise ContentNotFound(f"Unknown education content: {content_id}") from None

    def game(self, game_id: str) -> GameMode:
        """
        Raises:
            ContentNotFound: If no game has this id
        """
        try:
            return self._games[game_id]
        except KeyError:
            raise ContentNotFound(f"Unknown game mode: {game_id}") from None

    def education_ids(self) -> list[str]:
        return list(self._education)

    def game_ids(self) -> list[str]:
        return list(self._games)
