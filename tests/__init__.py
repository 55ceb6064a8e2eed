"""
Test package for jsonrpc-do.

This package contains:
- test_session.py: RpcSession unit tests
- test_decoder.py: Response decoding and batch correlation
- test_batch.py: Call validation and the batch accumulator
- test_methods.py: Method descriptors and output formatters
- test_transport.py: WebSocketTransport with a mocked socket
- test_errors.py, test_config.py, test_cli.py
- test_conformance.py: Scenarios from conformance/*.yaml
- conftest.py: Fake transport and fixtures
"""
