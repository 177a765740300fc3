"""Text embeddings for memory storage and search."""

from typing import Protocol

from openai import AsyncOpenAI

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

# Known dimensions to avoid a round trip just to size the collection
VECTOR_DIMS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


def get_embedding_dimension(model: str) -> int:
    """Get the vector size produced by an embedding model.

    Unknown models fall back to the text-embedding-3-small size.
    """
    return VECTOR_DIMS.get(model, VECTOR_DIMS[DEFAULT_EMBEDDING_MODEL])


class Embedder(Protocol):
    """Turns text into a fixed-length vector."""

    @property
    def dimension(self) -> int: ...

    async def embed(self, text: str) -> list[float]: ...


class OpenAIEmbedder:
    """Embedder backed by the OpenAI embeddings API."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> None:
        """Initialize the embedder.

        Args:
            client: The OpenAI client for embedding calls.
            model: The embedding model to use.
        """
        self.client = client
        self.model = model

    @property
    def dimension(self) -> int:
        return get_embedding_dimension(self.model)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        response = await self.client.embeddings.create(model=self.model, input=text)
        return list(response.data[0].embedding)
