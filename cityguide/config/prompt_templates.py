"""
City Guide - Prompt Templates
==============================
Centralised prompt text for the RAG engine.  All prompts live here so
they can be reviewed and changed independently of application logic.

Exports
-------
GREETING, RAG_PROMPT_TEMPLATE, NO_CONTEXT_PLACEHOLDER,
FALLBACK_CONTEXT_TEMPLATE, ERROR_RESPONSE.
"""

# ══════════════════════════════════════════════════════════════════════
#  GREETING
# ══════════════════════════════════════════════════════════════════════

GREETING: str = "Hello! How can I assist you today?"


# ══════════════════════════════════════════════════════════════════════
#  RAG PROMPT
# ══════════════════════════════════════════════════════════════════════
# Placeholders: {greeting}, {topic}, {context}, {question}
# The whole block is sent as the final user turn.

RAG_PROMPT_TEMPLATE: str = """{greeting} You are an AI assistant specialized in providing information about {topic} city. Use the following context to answer the user's question. If the context is from web search or Wikipedia, make it clear that this information is from external sources and might not be as specific to the PDF content.

Context: {context}

User's question: {question}

Please provide a helpful and informative response:"""

NO_CONTEXT_PLACEHOLDER: str = "No relevant information found."


# ══════════════════════════════════════════════════════════════════════
#  WEB FALLBACK CONTEXT
# ══════════════════════════════════════════════════════════════════════

FALLBACK_CONTEXT_TEMPLATE: str = "Web Search Results:\n{web_results}\n\nWikipedia Summary:\n{wiki_summary}"


# ══════════════════════════════════════════════════════════════════════
#  ERRORS
# ══════════════════════════════════════════════════════════════════════

ERROR_RESPONSE: str = "Something went wrong"
