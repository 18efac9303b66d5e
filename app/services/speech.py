"""Text-to-speech playback toggle on top of a host speech engine."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Voice:
    name: str
    lang: str


@dataclass(slots=True, frozen=True)
class VoiceTuning:
    rate: float = 1.0
    pitch: float = 1.0


@dataclass(slots=True, frozen=True)
class Utterance:
    text: str
    voice: Voice | None
    rate: float
    pitch: float


class SpeechEngine(Protocol):
    def voices(self) -> Sequence[Voice]: ...

    def speak(
        self,
        utterance: Utterance,
        on_end: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...

    def cancel(self) -> None: ...


class PlaybackState(str, enum.Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


# Ranked by preference; matched as substrings of the host's voice names.
VOICE_PREFERENCES: tuple[tuple[str, VoiceTuning], ...] = (
    ("Samantha", VoiceTuning(rate=1.0, pitch=1.0)),
    ("Daniel", VoiceTuning(rate=1.0, pitch=0.95)),
    ("Google US English", VoiceTuning(rate=1.05, pitch=1.0)),
    ("Google UK English", VoiceTuning(rate=1.05, pitch=1.0)),
    ("Microsoft Aria", VoiceTuning(rate=1.1, pitch=1.0)),
    ("Microsoft Guy", VoiceTuning(rate=1.1, pitch=0.95)),
)
DEFAULT_TUNING = VoiceTuning()


def choose_voice(voices: Sequence[Voice], preferred: str | None = None) -> tuple[Voice | None, VoiceTuning]:
    """Pick a voice and its rate/pitch.

    An explicitly ``preferred`` voice name wins when the host offers it; otherwise
    the first ranked family present among English voices, then any English voice.
    """

    if preferred:
        for voice in voices:
            if voice.name == preferred:
                return voice, _tuning_for(voice)

    english = [voice for voice in voices if "en" in voice.lang.lower()]
    for family, tuning in VOICE_PREFERENCES:
        for voice in english:
            if family in voice.name:
                return voice, tuning

    if english:
        return english[0], DEFAULT_TUNING
    return None, DEFAULT_TUNING


def _tuning_for(voice: Voice) -> VoiceTuning:
    for family, tuning in VOICE_PREFERENCES:
        if family in voice.name:
            return tuning
    return DEFAULT_TUNING


class SpeechPlaybackController:
    """Play/stop toggle around a :class:`SpeechEngine`."""

    def __init__(self, engine: SpeechEngine, *, preferred_voice: str | None = None) -> None:
        self._engine = engine
        self.preferred_voice = preferred_voice
        self.state = PlaybackState.IDLE
        self._generation = 0

    @property
    def speaking(self) -> bool:
        return self.state is PlaybackState.SPEAKING

    def play(self, text: str) -> PlaybackState:
        """Start speaking ``text``, or stop if already speaking."""

        if self.speaking:
            self.stop()
            return self.state

        voice, tuning = choose_voice(self._engine.voices(), self.preferred_voice)
        utterance = Utterance(text=text, voice=voice, rate=tuning.rate, pitch=tuning.pitch)
        self._generation += 1
        generation = self._generation
        self.state = PlaybackState.SPEAKING
        try:
            self._engine.speak(
                utterance,
                lambda: self._on_end(generation),
                lambda error: self._on_error(generation, error),
            )
        except Exception:
            self.state = PlaybackState.IDLE
            raise
        return self.state

    def stop(self) -> None:
        self._generation += 1
        self._engine.cancel()
        self.state = PlaybackState.IDLE

    def _on_end(self, generation: int) -> None:
        # Engines report end/error for cancelled utterances too; only the current one counts.
        if generation == self._generation:
            self.state = PlaybackState.IDLE

    def _on_error(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            return
        logger.warning("Speech playback failed", extra={"error": str(error)})
        self.state = PlaybackState.IDLE
