"""
Workout record types.

Sessions and exercise templates are the two synced collections.
Exercise instances and set progress are embedded in a session and
travel with it; they are never synced on their own.

All records serialize to plain JSON-compatible dicts so the local
and remote stores can hold them without knowing these classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any

from .exceptions import ValidationError
from .id_utils import new_record_id, utc_now_iso


class TrackingType(Enum):
    """How an exercise's sets are measured."""

    REPS = "repetitions"
    DURATION = "duration"


@dataclass(frozen=True)
class Tempo:
    """Tempo triple in seconds: lowering, pause, lifting."""

    eccentric: int = 2
    pause: int = 0
    concentric: int = 2

    def to_dict(self) -> dict[str, Any]:
        return {"eccentric": self.eccentric, "pause": self.pause, "concentric": self.concentric}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Tempo:
        if not data:
            return cls()
        return cls(
            eccentric=data.get("eccentric", 2),
            pause=data.get("pause", 0),
            concentric=data.get("concentric", 2),
        )


@dataclass
class ExerciseTemplate:
    """Library definition of an exercise and its default prescription."""

    id: str
    name: str
    default_sets: int = 3
    default_tracking_type: TrackingType = TrackingType.REPS
    default_target_reps: int | None = None
    default_target_duration: int | None = None  # seconds
    default_rest_time: int = 90  # seconds
    default_rpe: float = 7
    default_tempo: Tempo = field(default_factory=Tempo)
    default_weight: float | None = None
    image_url: str | None = None
    video_url: str | None = None
    updated_at: str | None = None

    @classmethod
    def create(cls, name: str, **prescription: Any) -> ExerciseTemplate:
        """Create a template with a freshly minted identity."""
        return cls(id=new_record_id(), name=name, updated_at=utc_now_iso(), **prescription)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "default_sets": self.default_sets,
            "default_tracking_type": self.default_tracking_type.value,
            "default_target_reps": self.default_target_reps,
            "default_target_duration": self.default_target_duration,
            "default_rest_time": self.default_rest_time,
            "default_rpe": self.default_rpe,
            "default_tempo": self.default_tempo.to_dict(),
            "default_weight": self.default_weight,
            "image_url": self.image_url,
            "video_url": self.video_url,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExerciseTemplate:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            default_sets=data.get("default_sets", 3),
            default_tracking_type=TrackingType(
                data.get("default_tracking_type", TrackingType.REPS.value)
            ),
            default_target_reps=data.get("default_target_reps"),
            default_target_duration=data.get("default_target_duration"),
            default_rest_time=data.get("default_rest_time", 90),
            default_rpe=data.get("default_rpe", 7),
            default_tempo=Tempo.from_dict(data.get("default_tempo")),
            default_weight=data.get("default_weight"),
            image_url=data.get("image_url"),
            video_url=data.get("video_url"),
            updated_at=data.get("updated_at", data.get("updatedAt")),
        )


@dataclass(frozen=True)
class SetProgress:
    """One completed set. ``set_number`` starts at 1."""

    set_number: int
    actual_rpe: float
    reps_done: int | None = None
    duration_done: int | None = None  # seconds
    weight: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "set_number": self.set_number,
            "reps_done": self.reps_done,
            "duration_done": self.duration_done,
            "actual_rpe": self.actual_rpe,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SetProgress:
        return cls(
            set_number=data["set_number"],
            actual_rpe=data.get("actual_rpe", 0),
            reps_done=data.get("reps_done"),
            duration_done=data.get("duration_done"),
            weight=data.get("weight"),
        )


@dataclass
class SessionExercise:
    """An exercise attached to a session.

    The prescription is copied from the template when attached, so later
    template edits do not rewrite past sessions. ``sets_progress`` is
    append-only and never longer than ``sets``.
    """

    id: str
    template_id: str
    name: str
    sets: int
    tracking_type: TrackingType
    rest_time: int
    target_rpe: float
    tempo: Tempo = field(default_factory=Tempo)
    target_reps: int | None = None
    target_duration: int | None = None
    target_weight: float | None = None
    sets_progress: list[SetProgress] = field(default_factory=list)
    image_url: str | None = None
    video_url: str | None = None

    @property
    def is_complete(self) -> bool:
        return len(self.sets_progress) >= self.sets

    @property
    def next_set_number(self) -> int:
        return len(self.sets_progress) + 1

    def log_set(
        self,
        actual_rpe: float,
        reps_done: int | None = None,
        duration_done: int | None = None,
        weight: float | None = None,
    ) -> SetProgress:
        """Append the next set's progress.

        Raises:
            ValidationError: If every prescribed set is already logged
        """
        if self.is_complete:
            raise ValidationError(
                "sets_progress",
                f"exercise {self.id} already has {self.sets} of {self.sets} sets",
            )
        progress = SetProgress(
            set_number=self.next_set_number,
            actual_rpe=actual_rpe,
            reps_done=reps_done,
            duration_done=duration_done,
            weight=weight,
        )
        self.sets_progress.append(progress)
        return progress

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "name": self.name,
            "sets": self.sets,
            "tracking_type": self.tracking_type.value,
            "target_reps": self.target_reps,
            "target_duration": self.target_duration,
            "rest_time": self.rest_time,
            "target_rpe": self.target_rpe,
            "tempo": self.tempo.to_dict(),
            "target_weight": self.target_weight,
            "sets_progress": [p.to_dict() for p in self.sets_progress],
            "image_url": self.image_url,
            "video_url": self.video_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionExercise:
        return cls(
            id=data["id"],
            template_id=data.get("template_id", ""),
            name=data.get("name", ""),
            sets=data.get("sets", 0),
            tracking_type=TrackingType(data.get("tracking_type", TrackingType.REPS.value)),
            rest_time=data.get("rest_time", 0),
            target_rpe=data.get("target_rpe", 0),
            tempo=Tempo.from_dict(data.get("tempo")),
            target_reps=data.get("target_reps"),
            target_duration=data.get("target_duration"),
            target_weight=data.get("target_weight"),
            sets_progress=[SetProgress.from_dict(p) for p in data.get("sets_progress", [])],
            image_url=data.get("image_url"),
            video_url=data.get("video_url"),
        )


def exercise_from_template(template: ExerciseTemplate) -> SessionExercise:
    """Attach a template to a session as a new exercise instance."""
    return SessionExercise(
        id=new_record_id(),
        template_id=template.id,
        name=template.name,
        sets=template.default_sets,
        tracking_type=template.default_tracking_type,
        rest_time=template.default_rest_time,
        target_rpe=template.default_rpe,
        tempo=template.default_tempo,
        target_reps=template.default_target_reps,
        target_duration=template.default_target_duration,
        target_weight=template.default_weight,
        image_url=template.image_url,
        video_url=template.video_url,
    )


@dataclass
class WorkoutSession:
    """A planned or completed workout on a given date."""

    id: str
    date: str  # YYYY-MM-DD
    name: str
    notes: str | None = None
    exercises: list[SessionExercise] = field(default_factory=list)
    is_completed: bool = False
    updated_at: str | None = None

    @classmethod
    def create(cls, name: str, on: str | date, notes: str | None = None) -> WorkoutSession:
        """Create a session with a freshly minted identity."""
        day = on.isoformat() if isinstance(on, date) else on
        return cls(id=new_record_id(), date=day, name=name, notes=notes, updated_at=utc_now_iso())

    def add_exercise(self, template: ExerciseTemplate) -> SessionExercise:
        exercise = exercise_from_template(template)
        self.exercises.append(exercise)
        return exercise

    def replace_exercise(self, exercise: SessionExercise) -> None:
        self.exercises = [exercise if ex.id == exercise.id else ex for ex in self.exercises]

    def remove_exercise(self, exercise_id: str) -> None:
        self.exercises = [ex for ex in self.exercises if ex.id != exercise_id]

    def finish(self) -> WorkoutSession:
        """Return a completed copy of this session."""
        return replace(self, is_completed=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "notes": self.notes,
            "exercises": [ex.to_dict() for ex in self.exercises],
            "is_completed": self.is_completed,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkoutSession:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            date=data.get("date", ""),
            name=data.get("name", ""),
            notes=data.get("notes"),
            exercises=[SessionExercise.from_dict(ex) for ex in data.get("exercises", [])],
            is_completed=bool(data.get("is_completed", False)),
            updated_at=data.get("updated_at", data.get("updatedAt")),
        )


def split_sessions(
    sessions: list[WorkoutSession], today: date
) -> tuple[list[WorkoutSession], list[WorkoutSession]]:
    """Split sessions into (upcoming, history).

    Upcoming sessions are not completed and dated today or later;
    everything else is history. Unparseable dates count as history.
    """
    upcoming: list[WorkoutSession] = []
    history: list[WorkoutSession] = []
    for session in sessions:
        try:
            day = date.fromisoformat(session.date)
        except ValueError:
            history.append(session)
            continue
        if not session.is_completed and day >= today:
            upcoming.append(session)
        else:
            history.append(session)
    return upcoming, history
