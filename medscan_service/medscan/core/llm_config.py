import os

from medscan.core.env import load_env

load_env()

INFERENCE_PROVIDER = os.getenv("INFERENCE_PROVIDER", "ollama").strip().lower()

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/api")
OLLAMA_MODEL_VISION = os.getenv("OLLAMA_MODEL_VISION", "llama3.2-vision")
OLLAMA_MODEL_TEXT = os.getenv("OLLAMA_MODEL_TEXT", "llama3.2")
OLLAMA_TEMPERATURE = float(os.getenv("OLLAMA_TEMPERATURE", "0.2"))
OLLAMA_TIMEOUT_S = int(os.getenv("OLLAMA_TIMEOUT_S", "90"))

# HF_TOKEN / HF_PROVIDER are read at call time in hf_client
HF_MODEL_VISION = os.getenv("HF_MODEL_VISION", "Qwen/Qwen2.5-VL-7B-Instruct")
HF_MODEL_TEXT = os.getenv("HF_MODEL_TEXT", "meta-llama/Llama-3.1-8B-Instruct")
HF_TEMPERATURE = float(os.getenv("HF_TEMPERATURE", "0.2"))
HF_MAX_TOKENS = int(os.getenv("HF_MAX_TOKENS", "2048"))
HF_TIMEOUT_S = int(os.getenv("HF_TIMEOUT_S", "90"))
