from .http import FakeTokenEndpoint, make_response, posted_json

__all__ = ["FakeTokenEndpoint", "make_response", "posted_json"]
