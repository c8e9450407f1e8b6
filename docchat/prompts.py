"""Prompt templates for query rewriting and grounded answering.

All prompts live here so they can be reviewed independently of the
pipeline code.
"""

EMPTY_HISTORY_PLACEHOLDER = "No previous conversation history."

NOT_FOUND_ANSWER = "I could not find the answer in the provided documents"

NO_CONTEXT_MARKER = "No relevant context was found in the provided documents."

QUERY_REWRITE_PROMPT = """You are a query rewriting expert. Based on the provided chat history, rephrase the "Follow Up user Question" into a complete, standalone question that can be understood without the chat history.
Only output the rewritten question and nothing else.

Chat History:
{history}

Follow Up user Question: {question}"""  # noqa: E501

ANSWER_INSTRUCTIONS = """You have to behave like {persona}.
You will be given a context of relevant information and a user question.
Your task is to answer the user's question based only on the provided context.
If the answer is not in the context, you must say "{not_found}".
Keep your answer clear, concise and educational."""

ANSWER_PROMPT = """{instructions}

Context: {context}{history}

Original Question: {question}
Transformed Question: {rewritten_question}"""

HISTORY_SECTION = "\n\nChat History:\n{turns}"
