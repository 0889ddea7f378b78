"""
Integration tests for completion-core.

Test components together or against real external services:
- Full invocation stack against a respx-mocked provider
- Redis cache (real server, marked with @pytest.mark.integration)
"""
