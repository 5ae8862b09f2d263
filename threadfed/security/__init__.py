"""
Guards applied to anything fetched from other servers
"""
from threadfed.security.uri_validator import URIValidator, validate_uri
from threadfed.security.json_validator import SafeJSONParser

__all__ = ['URIValidator', 'validate_uri', 'SafeJSONParser']
