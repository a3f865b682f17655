from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from sitegen.agent.llm_client import LLMClient
from sitegen.core.config import settings

InType = TypeVar("InType", bound=BaseModel)
OutType = TypeVar("OutType", bound=BaseModel | str)


class BaseAgent(ABC, Generic[InType, OutType]):
    """Abstract base class for all agents in the pipeline."""

    def __init__(self, model_name: str | None = None, llm: LLMClient | None = None):
        self.llm = llm or LLMClient(model_name=model_name or settings.MODEL_DEFAULT)

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        """Run the agent on the given input to produce the output artifact."""
        pass


class MockAgent(ABC, Generic[InType, OutType]):
    """Deterministic stand-in for an LLM-backed agent; never touches the network."""

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        pass
