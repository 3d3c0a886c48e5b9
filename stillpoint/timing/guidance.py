"""Deciding which guided prompt is due.

``dispatch`` is a pure function of the script, the session's elapsed and
remaining seconds, and the set of prompts already spoken. It returns at most
one cue per call together with the updated set, so it can be re-evaluated on
every tick without ever repeating a prompt.

Timed guidance is best-effort: an entry is only due while
``0 <= elapsed - offset < tolerance``. If evaluation stalls past that window
the entry is skipped rather than queued.
"""

from dataclasses import dataclass

from ..presets import GuidedScript

INTRO_KEY = "intro"
CONCLUSION_KEY = "conclusion"

DEFAULT_INTRO_DELAY_SEC = 2
DEFAULT_TOLERANCE_SEC = 2
DEFAULT_CONCLUSION_WINDOW_SEC = 10


def guidance_key(index: int) -> str:
    """Identity of the index-th guidance line in time order."""
    return f"guidance:{index}"


@dataclass(frozen=True)
class SpeechCue:
    """A prompt that should be spoken now."""

    key: str
    text: str
    time_offset_seconds: int | None = None


@dataclass(frozen=True)
class DispatchTiming:
    intro_delay_sec: int = DEFAULT_INTRO_DELAY_SEC
    tolerance_sec: int = DEFAULT_TOLERANCE_SEC
    conclusion_window_sec: int = DEFAULT_CONCLUSION_WINDOW_SEC


def dispatch(
    script: GuidedScript | None,
    elapsed_seconds: int,
    remaining_seconds: int,
    fired: frozenset[str] = frozenset(),
    timing: DispatchTiming = DispatchTiming(),
) -> tuple[SpeechCue | None, frozenset[str]]:
    """Pick the prompt due at this point in the session.

    Order of preference: introduction, then the earliest unfired guidance
    line whose window contains ``elapsed_seconds``, then the conclusion.

    Args:
        script: Guided script for the preset, or None for an unguided preset
        elapsed_seconds: Seconds since the run started, pauses excluded
        remaining_seconds: Seconds left in the run
        fired: Keys of prompts already spoken this run
        timing: Intro delay, matching tolerance and conclusion window

    Returns:
        (cue or None, fired set including the returned cue)
    """
    if script is None:
        return None, fired

    if INTRO_KEY not in fired and elapsed_seconds >= timing.intro_delay_sec:
        cue = SpeechCue(key=INTRO_KEY, text=script.introduction)
        return cue, fired | {INTRO_KEY}

    for index, line in enumerate(script.ordered_guidance()):
        key = guidance_key(index)
        if key in fired:
            continue
        delta = elapsed_seconds - line.time_offset_seconds
        if 0 <= delta < timing.tolerance_sec:
            cue = SpeechCue(
                key=key,
                text=line.text,
                time_offset_seconds=line.time_offset_seconds,
            )
            return cue, fired | {key}

    if (
        CONCLUSION_KEY not in fired
        and script.conclusion
        and 0 < remaining_seconds <= timing.conclusion_window_sec
    ):
        cue = SpeechCue(key=CONCLUSION_KEY, text=script.conclusion)
        return cue, fired | {CONCLUSION_KEY}

    return None, fired
