"""Prompt templates for context-augmented generation."""

CONTEXT_BLOCK_TEMPLATE = """Relevant context from previously generated content:
{context}

"""

AUGMENTED_PROMPT_TEMPLATE = """{context_block}{prompt}

Use the context above when it is relevant to keep answers consistent with earlier lessons. If it is not relevant, answer from general knowledge."""

TUTOR_CONTEXT_PROMPT = """
Context from knowledge base:
{context}

User question: {question}

Please provide a comprehensive answer based on the context above. If the context doesn't fully answer the question, provide additional helpful information.
"""

TUTOR_GENERAL_PROMPT = "Please answer this question about Arabic language learning: {question}"

QA_RECORD_TEMPLATE = "Q: {question}\nA: {answer}"

GENERATION_RECORD_TEMPLATE = "Prompt: {prompt}\nResponse: {content}"
