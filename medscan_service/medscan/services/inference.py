# medscan/services/inference.py
import asyncio
import logging
from typing import Callable, Optional, Protocol

from medscan.core import llm_config
from medscan.services.hf_client import hf_chat_text
from medscan.services.ollama_client import ollama_chat_text

logger = logging.getLogger(__name__)


class InferenceService(Protocol):
    async def infer(self, prompt: str, image_bytes: Optional[bytes] = None) -> str: ...


class ThreadedInference:
    """
    Adapts a blocking provider call to the event loop.
    Image prompts go to the vision model, text-only prompts to the text model.
    """

    def __init__(self, chat: Callable[..., str], vision_model: str, text_model: str, name: str = ""):
        self._chat = chat
        self.vision_model = vision_model
        self.text_model = text_model
        self.name = name

    async def infer(self, prompt: str, image_bytes: Optional[bytes] = None) -> str:
        model = self.vision_model if image_bytes else self.text_model
        logger.debug(f"{self.name} inference on {model} (image={bool(image_bytes)})")
        return await asyncio.to_thread(self._chat, model=model, prompt=prompt, image_bytes=image_bytes)


def get_inference_service(provider: Optional[str] = None) -> InferenceService:
    provider = (provider or llm_config.INFERENCE_PROVIDER).lower()
    if provider == "hf":
        return ThreadedInference(hf_chat_text, llm_config.HF_MODEL_VISION, llm_config.HF_MODEL_TEXT, name="hf")
    if provider != "ollama":
        logger.warning(f"Unknown INFERENCE_PROVIDER={provider!r}, using ollama")
    return ThreadedInference(
        ollama_chat_text, llm_config.OLLAMA_MODEL_VISION, llm_config.OLLAMA_MODEL_TEXT, name="ollama"
    )
