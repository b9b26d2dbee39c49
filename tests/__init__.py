"""
Engress Tests
=============

This package contains unit and integration tests for the Engress server.

Test Structure:
- test_segmenter.py: Peak gate classification and endpointing policy
- test_buffer.py: Utterance WAV buffer lifecycle
- test_session.py: Per-connection state machine
- test_dispatch.py: Transcript filtering, verdict validation and result delivery
- test_topics.py: Topic prompt and verdict validation
- test_llm.py, test_asr.py: External engine wrappers with mocked clients
- test_schemas.py: Wire format
- test_manager.py: Session registry
- test_config.py: Environment configuration
- test_api_server.py: WebSocket protocol round-trips
- conftest.py: Shared test fixtures and setup

To run tests:
    pytest tests/

To run with coverage:
    pytest tests/ --cov=engress

To run specific test file:
    pytest tests/test_segmenter.py
"""
