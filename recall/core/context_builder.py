"""
Token-budgeted context assembly.

Turns ranked search results into a prompt-ready context string. All
variants select candidates differently but share one greedy accumulator:
the header goes first, then whole blocks in rank order while the
estimated token count of the entire output stays within budget. A block
is either included whole or not at all.

Dependencies: recall.core.vector_search, recall.core.code_classifier, recall.core.embeddability
System role: Produces the context injected into model prompts
"""

import logging
from collections.abc import Iterable, Sequence

from recall.core.code_classifier import CodeClassifier, SubstringCodeClassifier
from recall.core.embeddability import CHARS_PER_TOKEN, estimate_tokens
from recall.core.vector_search import VectorSearchService
from recall.models.document import RankedResult, SourceType
from recall.observability.observer import NullObserver, PipelineEvent, PipelineObserver

MAX_CONTEXT_TOKENS = 3000
TRUNCATION_MARKER = "\n\n...(context truncated)"

GENERAL_HEADER = "# Relevant Context from Previous Conversations:\n\n"
CONVERSATION_HEADER = "# Relevant Context from This Conversation:\n\n"
CODE_HEADER = "# Relevant Code Examples:\n\n"
MULTI_TURN_HEADER = "# Relevant Context (Multi-Turn):\n\n"

CONVERSATION_TOP_K = 5
CODE_TOP_K = 8
CODE_MAX_EXAMPLES = 5
MULTI_TURN_TOP_K = 15
MULTI_TURN_MAX_CONVERSATIONS = 8


def matches_filter(result: RankedResult, metadata_filter: dict[str, str] | None) -> bool:
    """
    Whether a result's metadata contains every filter entry.

    Args:
        result: Ranked search result
        metadata_filter: Required key/value pairs (None or empty matches all)

    Returns:
        bool: True if every pair is present with an equal value
    """
    if not metadata_filter:
        return True
    metadata = result.document.metadata
    return all(metadata.get(key) == value for key, value in metadata_filter.items())


def conversation_key(result: RankedResult) -> str:
    """Conversation a result belongs to: metadata conversation_id, else source_id."""
    document = result.document
    return document.metadata.get("conversation_id") or document.source_id


class ContextBuilder:
    """
    Assembles context strings from hybrid search results.

    Empty output is a normal result meaning "nothing relevant fits".
    """

    def __init__(
        self,
        search_service: VectorSearchService,
        max_context_tokens: int = MAX_CONTEXT_TOKENS,
        code_classifier: CodeClassifier | None = None,
        multi_turn_max_conversations: int = MULTI_TURN_MAX_CONVERSATIONS,
        observer: PipelineObserver | None = None,
    ) -> None:
        """
        Initialize context builder.

        Args:
            search_service: Hybrid search provider
            max_context_tokens: Estimated token budget for each output
            code_classifier: Decides which chunks count as code
            multi_turn_max_conversations: Distinct conversations kept in multi-turn context
            observer: Sink for pipeline events
        """
        self.search_service = search_service
        self.max_context_tokens = max_context_tokens
        self.code_classifier = code_classifier or SubstringCodeClassifier()
        self.multi_turn_max_conversations = multi_turn_max_conversations
        self._observer = observer or NullObserver()

    async def build_context(
        self,
        query: str,
        metadata_filter: dict[str, str] | None = None,
        top_k: int = 10,
    ) -> str:
        """
        Build context for a free-standing query.

        Over-fetches 2 * top_k candidates so that filtering still leaves
        enough results, then keeps the best top_k.

        Args:
            query: User query
            metadata_filter: Optional metadata equality filter (e.g. library_id)
            top_k: Maximum number of blocks considered

        Returns:
            str: Context string, or "" if nothing relevant fits the budget

        Raises:
            ConfigurationError: Provider not configured
            ValidationError: Query fails the embeddability gate
            TransientProviderError: Query embedding failed
            StorageError: Search failed
        """
        results = await self.search_service.hybrid_search(query, top_k=top_k * 2)
        candidates = [r for r in results if matches_filter(r, metadata_filter)][:top_k]

        blocks = [
            f"---\n**Relevance**: {int(r.relevance_score * 100)}% | "
            f"**Source**: {r.document.source_type.value}\n{r.document.chunk_text}\n\n"
            for r in candidates
        ]
        return self._assemble("general", GENERAL_HEADER, blocks)

    async def build_conversation_context(self, conversation_id: str, query: str) -> str:
        """
        Build context from one conversation's own history.

        Args:
            conversation_id: Conversation to search within
            query: User query

        Returns:
            str: Context string, or "" if nothing relevant fits the budget
        """
        results = await self.search_service.hybrid_search(
            query,
            top_k=CONVERSATION_TOP_K,
            source_type=SourceType.CONVERSATION,
            source_id=conversation_id,
        )
        blocks = [f"{r.document.chunk_text}\n\n" for r in results]
        return self._assemble("conversation", CONVERSATION_HEADER, blocks)

    async def build_code_context(self, query: str, language: str | None = None) -> str:
        """
        Build context from chunks that look like code.

        Args:
            query: User query
            language: Optional language hint appended to the query

        Returns:
            str: Fenced code blocks, or "" if no code-like chunk fits
        """
        search_query = f"{query} {language} code example" if language else query
        results = await self.search_service.hybrid_search(search_query, top_k=CODE_TOP_K)

        code_results = [
            r for r in results if self.code_classifier.looks_like_code(r.document.chunk_text)
        ][:CODE_MAX_EXAMPLES]

        blocks = [f"```\n{r.document.chunk_text}\n```\n\n" for r in code_results]
        return self._assemble("code", CODE_HEADER, blocks)

    async def build_multi_turn_context(
        self,
        turns: Sequence[str],
        metadata_filter: dict[str, str] | None = None,
    ) -> str:
        """
        Build context from several recent user turns.

        The turns are joined into one compound query; results are
        deduplicated by conversation, keeping each conversation's
        best-ranked chunk.

        Args:
            turns: Recent user messages, oldest first
            metadata_filter: Optional metadata equality filter

        Returns:
            str: Context string, or "" if nothing relevant fits the budget
        """
        compound_query = " ".join(turns)
        results = await self.search_service.hybrid_search(compound_query, top_k=MULTI_TURN_TOP_K)

        seen: set[str] = set()
        unique: list[RankedResult] = []
        for result in results:
            if not matches_filter(result, metadata_filter):
                continue
            key = conversation_key(result)
            if key in seen:
                continue
            seen.add(key)
            unique.append(result)
            if len(unique) >= self.multi_turn_max_conversations:
                break

        blocks = [f"---\n{r.document.chunk_text}\n\n" for r in unique]
        return self._assemble("multi_turn", MULTI_TURN_HEADER, blocks)

    def truncate_context(self, context: str, max_tokens: int) -> str:
        """
        Hard-cut a context string to a token budget.

        Args:
            context: Context string
            max_tokens: Estimated token limit

        Returns:
            str: Original string if within budget, otherwise its prefix of
            max_tokens * 4 characters followed by a truncation marker
        """
        if estimate_tokens(context) <= max_tokens:
            return context
        return context[: max_tokens * CHARS_PER_TOKEN] + TRUNCATION_MARKER

    def _assemble(self, variant: str, header: str, blocks: Iterable[str]) -> str:
        """Greedy whole-block accumulation under the token budget."""
        parts = [header]
        length = len(header)
        included = 0

        for block in blocks:
            if (length + len(block)) // CHARS_PER_TOKEN > self.max_context_tokens:
                self._emit(
                    "budget_reached",
                    f"Token budget reached after {included} blocks",
                    variant=variant,
                    budget=self.max_context_tokens,
                )
                break
            parts.append(block)
            length += len(block)
            included += 1

        if included == 0:
            self._emit(
                "context_empty",
                "No relevant context fits the budget",
                level=logging.DEBUG,
                variant=variant,
            )
            return ""

        self._emit(
            "context_built",
            f"Built {variant} context with {included} blocks",
            variant=variant,
            blocks=included,
            tokens=length // CHARS_PER_TOKEN,
        )
        return "".join(parts)

    def _emit(self, name: str, message: str, level: int = logging.INFO, **fields) -> None:
        self._observer.emit(
            PipelineEvent(stage="context", name=name, message=message, level=level, fields=fields)
        )
