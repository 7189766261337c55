"""HTTP provider clients for OCR and speech backends."""

from .http_client import ProviderHTTPClient
from .openai_client import OpenAIVisionClient
from .sarvam_client import SarvamDocumentJobClient, SarvamSpeechClient

__all__ = [
    "OpenAIVisionClient",
    "ProviderHTTPClient",
    "SarvamDocumentJobClient",
    "SarvamSpeechClient",
]
