"""
Unit tests for completion-core.

Test individual components in isolation:
- Data models (validation, usage accumulation)
- Cache stores and signatures
- Concurrency limiter (bound, FIFO admission, timeouts)
- Retry policy and executor
- Stream decoding and reconstruction
- Executors, adapter batching, facade, factory
"""
