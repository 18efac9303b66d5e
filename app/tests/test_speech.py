"""Tests for the speech playback toggle."""

from __future__ import annotations

from app.services.speech import (
    DEFAULT_TUNING,
    PlaybackState,
    SpeechPlaybackController,
    Utterance,
    Voice,
    choose_voice,
)


class FakeEngine:
    def __init__(self, voices: list[Voice]) -> None:
        self._voices = voices
        self.spoken: list[Utterance] = []
        self.cancelled = 0
        self.on_end = None
        self.on_error = None
        self.callbacks: list = []

    def voices(self) -> list[Voice]:
        return self._voices

    def speak(self, utterance, on_end, on_error) -> None:
        self.spoken.append(utterance)
        self.on_end = on_end
        self.on_error = on_error
        self.callbacks.append((on_end, on_error))

    def cancel(self) -> None:
        self.cancelled += 1


VOICES = [
    Voice("Thomas", "fr-FR"),
    Voice("Karen", "en-AU"),
    Voice("Google US English", "en-US"),
    Voice("Daniel (Enhanced)", "en-GB"),
]


def test_choose_voice_uses_ranked_preferences():
    voice, tuning = choose_voice(VOICES)
    assert voice is not None and voice.name == "Daniel (Enhanced)"
    assert tuning.pitch == 0.95


def test_choose_voice_falls_back_to_first_english_voice():
    voice, tuning = choose_voice([Voice("Thomas", "fr-FR"), Voice("Karen", "en-AU")])
    assert voice is not None and voice.name == "Karen"
    assert tuning == DEFAULT_TUNING


def test_choose_voice_honours_explicit_choice():
    voice, tuning = choose_voice(VOICES, preferred="Google US English")
    assert voice is not None and voice.name == "Google US English"
    assert tuning.rate == 1.05


def test_choose_voice_without_english_voices():
    assert choose_voice([Voice("Thomas", "fr-FR")]) == (None, DEFAULT_TUNING)


def test_play_toggles_between_idle_and_speaking():
    engine = FakeEngine(VOICES)
    controller = SpeechPlaybackController(engine)

    assert controller.play("Hello there") is PlaybackState.SPEAKING
    assert engine.spoken[0].text == "Hello there"
    assert engine.spoken[0].voice == Voice("Daniel (Enhanced)", "en-GB")

    assert controller.play("Hello there") is PlaybackState.IDLE
    assert engine.cancelled == 1
    assert len(engine.spoken) == 1


def test_completion_and_error_return_to_idle():
    engine = FakeEngine(VOICES)
    controller = SpeechPlaybackController(engine)

    controller.play("one")
    engine.on_end()
    assert controller.state is PlaybackState.IDLE

    controller.play("two")
    engine.on_error(RuntimeError("interrupted"))
    assert controller.state is PlaybackState.IDLE
    assert len(engine.spoken) == 2


def test_late_callbacks_from_cancelled_utterance_are_ignored():
    engine = FakeEngine(VOICES)
    controller = SpeechPlaybackController(engine)

    controller.play("one")
    controller.play("one")
    controller.play("two")
    first_end, first_error = engine.callbacks[0]

    first_end()
    assert controller.state is PlaybackState.SPEAKING
    first_error(RuntimeError("canceled"))
    assert controller.state is PlaybackState.SPEAKING

    engine.on_end()
    assert controller.state is PlaybackState.IDLE
