"""
Agents package for the Website Query Assistant project.

Import `WebsiteQueryAgent` directly from here to simplify access:

```python
from agents import WebsiteQueryAgent

agent = WebsiteQueryAgent()
result = agent.invoke("What does the pricing page say?", ["https://example.com/pricing"])
```
"""

from .query_models import QueryWebsiteArguments, QueryWebsiteResult  # noqa: F401
from .retrieval_qa import QAResult, RetrievalQAChain  # noqa: F401
from .website_query_agent import WebsiteQueryAgent  # noqa: F401

__all__ = [
    "QAResult",
    "QueryWebsiteArguments",
    "QueryWebsiteResult",
    "RetrievalQAChain",
    "WebsiteQueryAgent",
]
