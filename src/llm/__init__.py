from src.llm.client import ExtractionClient
from src.llm.factory import create_chat_model
from src.llm.schemas import LLMConfig, ProviderConfig
