from mocks.mock_backend import MockBackend, MockServiceBase

__all__ = ['MockBackend', 'MockServiceBase']
