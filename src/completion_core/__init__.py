"""
Invocation core for remote text-completion providers.

Turns one or more prompts into completions while handling:
- Result caching keyed on prompt + invocation parameters
- Bounded, FIFO-fair concurrency for outbound requests
- Retry with exponential backoff on transient failures
- Reassembly of server-sent-event token streams

Architecture: LLM facade -> provider adapter -> limiter -> retry -> executor
"""

__version__ = "0.1.0"
