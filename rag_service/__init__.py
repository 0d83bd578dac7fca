"""
RAG service: knowledge base ingestion, hybrid retrieval and grounded
chat over an OpenAI-compatible model provider.
"""

__version__ = "0.1.0"
