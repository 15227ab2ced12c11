"""lingorag: retrieval-augmented content cache for AI-assisted lessons.

Typical use:

    from lingorag import build_rag_client

    async with build_rag_client() as rag:
        await rag.initialize()
        result = await rag.answer("When do I use the present simple?")
"""

from .application.rag_client import RagClient
from .composition.container import build_rag_client

__version__ = "1.0.0"

__all__ = ["RagClient", "build_rag_client", "__version__"]
