"""Text-to-speech provider abstractions.

This package contains the synthesizer protocol, its OpenAI-backed
implementation, and the retry policy applied around provider calls.
"""

from .openai_client import OpenAISpeechClient
from .synthesizer import OpenAISpeechSynthesizer, RetryPolicy, SpeechSynthesizer

__all__ = [
    "OpenAISpeechClient",
    "OpenAISpeechSynthesizer",
    "RetryPolicy",
    "SpeechSynthesizer",
]
