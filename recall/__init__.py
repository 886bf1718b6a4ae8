"""
Conversation recall: retrieval-augmented context for chat prompts.

Indexes prior conversation text as vector embeddings and assembles
token-budgeted context for new queries.
"""

__version__ = "0.1.0"
