"""Bundled meditation presets and their guided voice scripts."""

import re
from dataclasses import dataclass, field
from enum import Enum


class SessionType(str, Enum):
    """Kind of practice a preset runs."""

    BREATHING = "breathing"
    MINDFULNESS = "mindfulness"
    BODY_SCAN = "body-scan"


@dataclass(frozen=True)
class BreathingPattern:
    """Seconds spent in each phase of one breath cycle.

    A phase with zero seconds is skipped.
    """

    inhale: int
    hold1: int
    exhale: int
    hold2: int

    def to_dict(self) -> dict:
        return {
            "inhale": self.inhale,
            "hold1": self.hold1,
            "exhale": self.exhale,
            "hold2": self.hold2,
        }


@dataclass(frozen=True)
class Preset:
    """Static definition of a meditation session."""

    id: str
    name: str
    description: str
    duration_minutes: int
    type: SessionType
    breathing_pattern: BreathingPattern | None = None

    @property
    def total_seconds(self) -> int:
        return max(0, int(self.duration_minutes * 60))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration_minutes,
            "type": self.type.value,
            "breathing_pattern": (
                self.breathing_pattern.to_dict() if self.breathing_pattern else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Preset":
        pattern = data.get("breathing_pattern")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            duration_minutes=data["duration"],
            type=SessionType(data.get("type", "mindfulness")),
            breathing_pattern=BreathingPattern(**pattern) if pattern else None,
        )


@dataclass(frozen=True)
class GuidanceLine:
    """A prompt spoken a fixed number of seconds into the session."""

    time_offset_seconds: int
    text: str


@dataclass(frozen=True)
class GuidedScript:
    """Introduction, timed guidance and conclusion for one preset."""

    introduction: str
    guidance: tuple[GuidanceLine, ...] = field(default_factory=tuple)
    conclusion: str = ""

    def ordered_guidance(self) -> list[GuidanceLine]:
        """Guidance lines in ascending time order."""
        return sorted(self.guidance, key=lambda line: line.time_offset_seconds)


def script_key(name: str) -> str:
    """Normalize a preset name into the key its script is stored under.

    "Box Breathing" -> "box-breathing"
    """
    return re.sub(r"\s+", "-", name.strip().lower())


def find_script(preset: Preset, scripts: dict[str, GuidedScript]) -> GuidedScript | None:
    """Look up the guided script for a preset, or None when it has none."""
    return scripts.get(script_key(preset.name))


DEFAULT_PRESETS: tuple[Preset, ...] = (
    Preset(
        id="box-breathing",
        name="Box Breathing",
        description="Equal 4-count breathing for balance",
        duration_minutes=5,
        type=SessionType.BREATHING,
        breathing_pattern=BreathingPattern(inhale=4, hold1=4, exhale=4, hold2=4),
    ),
    Preset(
        id="478-breathing",
        name="4-7-8 Breathing",
        description="Calming breath for relaxation",
        duration_minutes=5,
        type=SessionType.BREATHING,
        breathing_pattern=BreathingPattern(inhale=4, hold1=7, exhale=8, hold2=0),
    ),
    Preset(
        id="mindfulness-5",
        name="Mindfulness",
        description="Present moment awareness",
        duration_minutes=5,
        type=SessionType.MINDFULNESS,
    ),
    Preset(
        id="mindfulness-10",
        name="Extended Mindfulness",
        description="Deeper awareness practice",
        duration_minutes=10,
        type=SessionType.MINDFULNESS,
    ),
    Preset(
        id="body-scan",
        name="Body Scan",
        description="Progressive relaxation",
        duration_minutes=15,
        type=SessionType.BODY_SCAN,
    ),
    Preset(
        id="mindfulness-20",
        name="Deep Practice",
        description="Extended meditation session",
        duration_minutes=20,
        type=SessionType.MINDFULNESS,
    ),
)


def _lines(*pairs: tuple[int, str]) -> tuple[GuidanceLine, ...]:
    return tuple(GuidanceLine(time_offset_seconds=t, text=text) for t, text in pairs)


# Keyed by script_key(preset.name). "Deep Practice" has no script and runs silent.
GUIDED_SCRIPTS: dict[str, GuidedScript] = {
    "mindfulness": GuidedScript(
        introduction=(
            "Welcome to your 5-minute mindfulness meditation. "
            "Find a comfortable position and gently close your eyes."
        ),
        guidance=_lines(
            (30, "Begin by taking three deep breaths. Inhale slowly through your nose."),
            (45, "And exhale completely through your mouth."),
            (60, "Now allow your breathing to return to its natural rhythm."),
            (90, "Notice the sensation of your breath as it enters and leaves your body."),
            (120, "When your mind wanders, gently bring your attention back to your breath."),
            (180, "There's no need to control your breathing. Simply observe."),
            (240, "Notice any thoughts or feelings that arise, and let them pass like clouds in the sky."),
            (270, "Continue to rest your attention on the breath."),
        ),
        conclusion=(
            "Take a moment to appreciate this time you've given yourself. "
            "When you're ready, gently open your eyes."
        ),
    ),
    "extended-mindfulness": GuidedScript(
        introduction=(
            "Welcome to your 10-minute mindfulness practice. "
            "Settle into a comfortable position and close your eyes softly."
        ),
        guidance=_lines(
            (30, "Begin with three conscious breaths. Breathe in deeply."),
            (45, "And release completely."),
            (75, "Allow your body to relax with each exhale."),
            (120, "Bring your attention to your breath. Notice where you feel it most clearly."),
            (180, "Perhaps at your nostrils, chest, or belly. Rest your attention there."),
            (240, "When thoughts arise, acknowledge them kindly and return to your breath."),
            (300, "There's nowhere else you need to be right now. Just here, just breathing."),
            (360, "Notice the space between your thoughts. Rest in that spaciousness."),
            (420, "If you feel restless, that's perfectly normal. Simply return to your breath."),
            (480, "Continue to cultivate this gentle awareness."),
            (540, "Notice how your body feels now compared to when you began."),
        ),
        conclusion=(
            "You've completed your meditation. Take a moment to set an intention "
            "for the rest of your day. Open your eyes when ready."
        ),
    ),
    "body-scan": GuidedScript(
        introduction=(
            "Welcome to your body scan meditation. Lie down comfortably or sit with "
            "your back straight. Close your eyes and take three deep breaths."
        ),
        guidance=_lines(
            (45, "Begin by bringing attention to the top of your head. Notice any sensations there."),
            (90, "Now move your attention to your forehead. Relax any tension you might find."),
            (120, "Notice your eyes, your cheeks, and your jaw. Let them soften."),
            (180, "Bring awareness to your neck and shoulders. Allow them to release and drop."),
            (240, "Move down to your arms. Notice your upper arms, forearms, and hands."),
            (300, "Bring attention to your chest. Feel it rise and fall with each breath."),
            (360, "Notice your upper back, middle back, and lower back. Let them relax."),
            (420, "Move to your abdomen. Notice any sensations without trying to change them."),
            (480, "Bring awareness to your hips and pelvis. Let them settle."),
            (540, "Notice your thighs, both front and back. Allow them to be heavy."),
            (600, "Move to your knees, then your calves and shins."),
            (660, "Finally, bring attention to your feet. Notice your ankles, the tops and soles of your feet."),
            (720, "Now take a moment to feel your whole body as one complete, relaxed whole."),
            (780, "Rest in this feeling of complete relaxation."),
        ),
        conclusion=(
            "You've completed your body scan. Notice how your body feels now. "
            "When you're ready, gently wiggle your fingers and toes, and slowly open your eyes."
        ),
    ),
    "box-breathing": GuidedScript(
        introduction=(
            "Welcome to box breathing. This practice will help you find balance and calm. "
            "Sit comfortably and prepare to breathe in a steady rhythm."
        ),
        guidance=_lines(
            (30, "We'll breathe in a pattern of 4 counts in, 4 counts hold, 4 counts out, 4 counts hold."),
            (60, "Let's begin. Breathe in for 4... 2... 3... 4."),
            (68, "Hold for 4... 2... 3... 4."),
            (76, "Breathe out for 4... 2... 3... 4."),
            (84, "Hold for 4... 2... 3... 4."),
            (120, "Continue this rhythm. I'll guide you occasionally."),
            (180, "You're doing well. Keep the steady rhythm."),
            (240, "Notice how this balanced breathing affects your mind and body."),
        ),
        conclusion="Excellent work. Take a few natural breaths and notice the sense of balance you've created.",
    ),
    "4-7-8-breathing": GuidedScript(
        introduction=(
            "Welcome to 4-7-8 breathing, a powerful technique for relaxation. "
            "Sit comfortably and prepare for this calming practice."
        ),
        guidance=_lines(
            (30, "We'll breathe in for 4 counts, hold for 7, and exhale for 8. "
                 "This longer exhale activates your relaxation response."),
            (60, "Let's begin. Breathe in for 4... 2... 3... 4."),
            (67, "Hold for 7... 2... 3... 4... 5... 6... 7."),
            (82, "Exhale slowly for 8... 2... 3... 4... 5... 6... 7... 8."),
            (120, "Continue this pattern. The long exhale is key to relaxation."),
            (180, "With each exhale, feel tension leaving your body."),
            (240, "Notice how your nervous system is beginning to calm."),
        ),
        conclusion=(
            "Beautiful work. This breathing pattern has activated your body's natural "
            "relaxation response. Take a moment to enjoy this calm state."
        ),
    ),
}


def get_preset(preset_id: str, presets: tuple[Preset, ...] | list[Preset] = DEFAULT_PRESETS) -> Preset | None:
    """Find a preset by id."""
    for preset in presets:
        if preset.id == preset_id:
            return preset
    return None
