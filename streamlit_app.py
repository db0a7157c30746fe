"""
Streamlit entry point for the Website Query Assistant.

Provides a chat-style interface on top of `WebsiteQueryAgent`: the URLs to read
are entered in the sidebar, each chat message is a question about them, and
the progress messages of the latest run are shown in a sidebar expander.
"""

from __future__ import annotations

import logging
from typing import Dict, List

import streamlit as st
from dotenv import load_dotenv

from agents.website_query_agent import WebsiteQueryAgent

# Ensure environment variables from .env are loaded before instantiating the agent.
load_dotenv()

LOGGER = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def _get_agent() -> WebsiteQueryAgent:
    """Create a singleton WebsiteQueryAgent per Streamlit process."""
    return WebsiteQueryAgent(report_progress=_record_progress)


async def _record_progress(message: str) -> None:
    progress = st.session_state.get("progress")
    if progress is not None:
        progress.append(message)


def _init_session_state() -> None:
    """Initialize keys stored in st.session_state."""
    if "messages" not in st.session_state:
        st.session_state.messages: List[Dict[str, str]] = []
    if "progress" not in st.session_state:
        st.session_state.progress: List[str] = []
    if "urls" not in st.session_state:
        st.session_state.urls = ""


def _render_sidebar() -> List[str]:
    """Render sidebar controls and return the URLs to query."""
    with st.sidebar:
        st.header("Websites")
        st.session_state.urls = st.text_area(
            "One URL per line",
            value=st.session_state.urls,
            height=150,
        )
        if st.button("Clear conversation", use_container_width=True):
            st.session_state.messages = []
            st.session_state.progress = []
            st.rerun()

        st.divider()
        with st.expander("Latest progress", expanded=False):
            if st.session_state.progress:
                for message in st.session_state.progress:
                    st.markdown(message)
            else:
                st.caption("No websites read yet.")

    return [line.strip() for line in st.session_state.urls.splitlines() if line.strip()]


def main() -> None:
    st.set_page_config(
        page_title="Website Query Assistant",
        layout="wide",
    )

    st.title("Website Query Assistant")
    st.caption("Ask a question and the assistant will read the listed websites before answering.")

    _init_session_state()
    urls = _render_sidebar()

    try:
        agent = _get_agent()
    except Exception as exc:  # pragma: no cover - defensive guard for UI
        error_message = (
            "Failed to initialize the website query agent. "
            "Verify API keys in your environment and restart the app.\n\n"
            f"Details: {exc}"
        )
        LOGGER.exception("Streamlit failed to initialize WebsiteQueryAgent: %s", exc)
        st.error(error_message)
        return

    # Replay the chat history.
    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("What do you want to know about these websites?")
    if not prompt:
        return

    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        placeholder = st.empty()
        if not urls:
            response = "Add at least one URL in the sidebar first."
        else:
            st.session_state.progress = []
            with st.spinner("Reading websites..."):
                try:
                    result = agent.invoke(prompt, urls)
                    response = result.bot_readable_content or "No readable websites were given."
                except Exception as exc:  # pragma: no cover - surfaced to UI
                    LOGGER.exception("Agent invocation failed: %s", exc)
                    response = f"An error occurred while reading the websites:\n\n{exc}"
        placeholder.markdown(response)

    st.session_state.messages.append({"role": "assistant", "content": response})


if __name__ == "__main__":
    main()
