"""Speech synthesis and voice catalog components."""

from .stitcher import SynthesisStitcher
from .synthesizer import SarvamSpeechSynthesizer, SpeechSynthesizer
from .voices import LANGUAGES, SPEAKERS, VoiceProfile, voice_profile

__all__ = [
    "LANGUAGES",
    "SPEAKERS",
    "SarvamSpeechSynthesizer",
    "SpeechSynthesizer",
    "SynthesisStitcher",
    "VoiceProfile",
    "voice_profile",
]
