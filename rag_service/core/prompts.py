"""
RAG answer prompts.

System prompt templates for grounded answers, with and without retrieved
context, plus conversion from LangChain messages to provider wire format.

Dependencies: langchain_core.prompts, langchain_core.messages
System role: Prompt template for answer generation
"""

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from rag_service.boundary.providers.schemas import ChatMessage
from rag_service.core.context_assembler import AssembledContext
from rag_service.models.chat import Turn

SYSTEM_PROMPT = (
    "You are a helpful AI assistant that answers questions based on the provided context. "
    "Use the context information to provide accurate and relevant answers. "
    "If the context doesn't contain enough information to answer the question, say so clearly."
)

CONTEXT_SECTION = "\n\nContext information:\n{context}"

NO_CONTEXT_SECTION = (
    "\n\nNo relevant context found in the knowledge base. "
    "Please let the user know that you don't have specific information about their query "
    "and do not cite sources."
)

RAG_PROMPT_WITH_CONTEXT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT + CONTEXT_SECTION),
    MessagesPlaceholder("history"),
    ("human", "{question}"),
])

RAG_PROMPT_NO_CONTEXT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT + NO_CONTEXT_SECTION),
    MessagesPlaceholder("history"),
    ("human", "{question}"),
])

_ROLES = {"system": "system", "human": "user", "ai": "assistant"}


def history_messages(history: list[Turn]) -> list[BaseMessage]:
    """Prior turns as alternating human/AI messages, oldest first."""
    messages: list[BaseMessage] = []
    for turn in history:
        messages.append(HumanMessage(content=turn.question))
        messages.append(AIMessage(content=turn.answer))
    return messages


def build_messages(
    context: AssembledContext,
    history: list[Turn],
    question: str,
) -> list[BaseMessage]:
    """System message with context, prior turns, then the current question."""
    if context.has_context:
        return RAG_PROMPT_WITH_CONTEXT.format_messages(
            context=context.text,
            history=history_messages(history),
            question=question,
        )
    return RAG_PROMPT_NO_CONTEXT.format_messages(
        history=history_messages(history),
        question=question,
    )


def to_wire(messages: list[BaseMessage]) -> list[ChatMessage]:
    return [ChatMessage(role=_ROLES[message.type], content=str(message.content)) for message in messages]
