"""
Content catalog models - education lessons and game modes.

Catalogs are authored elsewhere; the engine only reads the fields it
needs to seed overlays (titles, step instructions and hints, game
rules and scoring).
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ARStep:
    id: str
    instruction: str
    hints: tuple[str, ...] = ()
    visual_cue: str = ""
    interaction_required: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ARStep":
        return cls(
            id=str(data["id"]),
            instruction=str(data["instruction"]),
            hints=tuple(data.get("hints") or ()),
            visual_cue=str(data.get("visualCue", data.get("visual_cue", ""))),
            interaction_required=bool(
                data.get("interactionRequired", data.get("interaction_required", False))
            ),
        )


@dataclass(frozen=True)
class EducationContent:
    """A lesson made of sequential steps."""

    id: str
    title: str
    description: str = ""
    category: str = "basics"
    difficulty: str = "beginner"
    steps: tuple[ARStep, ...] = ()
    estimated_time: int = 0
    points: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EducationContent":
        # Steps may sit at the top level or under "content" as authored upstream
        steps = data.get("steps")
        if steps is None:
            steps = (data.get("content") or {}).get("steps", [])
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=str(data.get("description", "")),
            category=str(data.get("category", "basics")),
            difficulty=str(data.get("difficulty", "beginner")),
            steps=tuple(ARStep.from_dict(s) for s in steps),
            estimated_time=int(data.get("estimatedTime", data.get("estimated_time", 0))),
            points=int(data.get("points", 0)),
        )


@dataclass(frozen=True)
class GameScoring:
    base_points: int = 10
    time_bonus: bool = False
    accuracy_multiplier: float = 1.0
    penalty_for_errors: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameScoring":
        return cls(
            base_points=int(data.get("basePoints", data.get("base_points", 10))),
            time_bonus=bool(data.get("timeBonus", data.get("time_bonus", False))),
            accuracy_multiplier=float(
                data.get("accuracyMultiplier", data.get("accuracy_multiplier", 1.0))
            ),
            penalty_for_errors=int(
                data.get("penaltyForErrors", data.get("penalty_for_errors", 0))
            ),
        )


@dataclass(frozen=True)
class GameMode:
    """A game definition. Scoring is descriptive only."""

    id: str
    name: str
    type: str
    description: str = ""
    difficulty: str = "medium"
    rules: tuple[str, ...] = ()
    scoring: GameScoring = field(default_factory=GameScoring)
    leaderboard: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameMode":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=str(data["type"]),
            description=str(data.get("description", "")),
            difficulty=str(data.get("difficulty", "medium")),
            rules=tuple(data.get("rules") or ()),
            scoring=GameScoring.from_dict(data.get("scoring") or {}),
            leaderboard=bool(data.get("leaderboard", False)),
        )
