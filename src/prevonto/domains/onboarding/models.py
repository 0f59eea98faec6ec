"""Onboarding questionnaire models (``/api/onboarding``)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from prevonto.core.http.decoding import PayloadReader
from prevonto.core.json.dynamic import DynamicObject, compact_object


@dataclass
class OnboardingMedicationEntry:
    name: str
    dosage: str | None = None
    frequency: str | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> OnboardingMedicationEntry:
        return cls(
            name=reader.text("name"),
            dosage=reader.opt_text("dosage"),
            frequency=reader.opt_text("frequency"),
        )

    def to_dynamic(self) -> DynamicObject:
        return compact_object(
            {"name": self.name, "dosage": self.dosage, "frequency": self.frequency}
        )


@dataclass
class OnboardingRequest:
    """Answers collected so far; unanswered steps are left out of the body."""

    gender: str | None = None  # male, female, other, prefer_not_to_say
    current_weight: float | None = None
    weight_unit: str | None = None  # kg or lbs
    age: int | None = None
    fitness_level: str | None = None  # beginner, intermediate, advanced, athlete
    sleep_level: str | None = None  # poor, fair, good, excellent
    current_mood: str | None = None  # very_poor, poor, neutral, good, excellent
    diet_type: str | None = None
    diet_notes: str | None = None
    medications: list[OnboardingMedicationEntry] | None = None
    symptoms_or_allergies: str | None = None
    preferred_metrics: list[str] | None = None
    is_completed: bool | None = None

    def to_dynamic(self) -> DynamicObject:
        medications = None
        if self.medications is not None:
            medications = [entry.to_dynamic() for entry in self.medications]
        return compact_object(
            {
                "gender": self.gender,
                "current_weight": self.current_weight,
                "weight_unit": self.weight_unit,
                "age": self.age,
                "fitness_level": self.fitness_level,
                "sleep_level": self.sleep_level,
                "current_mood": self.current_mood,
                "diet_type": self.diet_type,
                "diet_notes": self.diet_notes,
                "medications": medications,
                "symptoms_or_allergies": self.symptoms_or_allergies,
                "preferred_metrics": self.preferred_metrics,
                "is_completed": self.is_completed,
            }
        )


@dataclass
class OnboardingResponse:
    id: int
    user_id: int
    is_completed: bool
    created_at: datetime
    updated_at: datetime
    gender: str | None = None
    current_weight: float | None = None
    weight_unit: str | None = None
    age: int | None = None
    fitness_level: str | None = None
    sleep_level: str | None = None
    current_mood: str | None = None
    diet_type: str | None = None
    diet_notes: str | None = None
    medications: list[OnboardingMedicationEntry] | None = None
    symptoms_or_allergies: str | None = None
    preferred_metrics: list[str] | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> OnboardingResponse:
        return cls(
            id=reader.integer("id"),
            user_id=reader.integer("user_id"),
            is_completed=reader.flag("is_completed"),
            created_at=reader.timestamp("created_at"),
            updated_at=reader.timestamp("updated_at"),
            gender=reader.opt_text("gender"),
            current_weight=reader.opt_number("current_weight"),
            weight_unit=reader.opt_text("weight_unit"),
            age=reader.opt_integer("age"),
            fitness_level=reader.opt_text("fitness_level"),
            sleep_level=reader.opt_text("sleep_level"),
            current_mood=reader.opt_text("current_mood"),
            diet_type=reader.opt_text("diet_type"),
            diet_notes=reader.opt_text("diet_notes"),
            medications=reader.opt_nested_list("medications", OnboardingMedicationEntry),
            symptoms_or_allergies=reader.opt_text("symptoms_or_allergies"),
            preferred_metrics=reader.opt_texts("preferred_metrics"),
            completed_at=reader.opt_timestamp("completed_at"),
        )


@dataclass
class OnboardingProgressResponse:
    total_steps: int
    completed_steps: int
    progress_percentage: float
    is_completed: bool
    missing_steps: list[str]
    onboarding_data: OnboardingResponse

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> OnboardingProgressResponse:
        return cls(
            total_steps=reader.integer("total_steps"),
            completed_steps=reader.integer("completed_steps"),
            progress_percentage=reader.number("progress_percentage"),
            is_completed=reader.flag("is_completed"),
            missing_steps=reader.texts("missing_steps"),
            onboarding_data=reader.nested("onboarding_data", OnboardingResponse),
        )
