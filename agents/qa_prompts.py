"""
Centralized prompts and tool metadata used by the website query agent.
"""

from __future__ import annotations

from typing import Any, Dict


QA_SYSTEM_PROMPT: str = (
    "You answer questions about web pages. Use only the context supplied with each question. "
    "If the context does not contain the answer, say that you don't know instead of making one up. "
    "Keep answers concise and quote the page where it helps."
)

QUERY_WEBSITE_TOOL_NAME: str = "queryWebsite"

QUERY_WEBSITE_DESCRIPTION: str = (
    "Useful for when you need to answer a question using information from a website."
)

QUERY_WEBSITE_TOOL: Dict[str, Any] = {
    "name": QUERY_WEBSITE_TOOL_NAME,
    "description": QUERY_WEBSITE_DESCRIPTION,
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "things you want to know about the website",
            },
            "urls": {
                "type": "array",
                "description": "urls of the website, you can use urls appearing in the conversation",
                "items": {"type": "string"},
            },
        },
        "required": ["query", "urls"],
    },
}


def qa_prompt(*, question: str, context: str) -> str:
    """Return the user message for a retrieval-QA call."""

    return (
        "Use the following pieces of context to answer the question at the end. "
        "If you don't know the answer, just say that you don't know, don't try to make up an answer.\n\n"
        f"{context}\n\n"
        f"Question: {question}\n"
        "Helpful Answer:"
    )


def finished_reading_message(urls: list[str]) -> str:
    links = "\n".join(f"- [{url}]({url})" for url in urls)
    return f"Finish reading websites.\n{links}"
