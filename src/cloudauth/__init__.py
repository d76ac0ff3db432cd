"""cloudauth -- Application Default Credentials and token lifecycle for Google Cloud.

This package works out which credential a process should use to call
Google Cloud APIs and keeps the bearer token that credential produces
fresh: issuing it, caching it, detecting expiry, refreshing it, and
retrying exactly once when a request comes back 401.

Typical usage::

    from cloudauth.auth import ApplicationDefaultCredentialsResolver

    resolver = ApplicationDefaultCredentialsResolver()
    result = resolver.get_application_default()
    headers = result.credential.get_request_metadata().headers

Modules:
    auth: Resolution chain, refresh engine, loader, platform detection.
    credentials: The five credential variants.
    transport: ``httpx``-backed request capability.
    models: Pydantic models shared across the package.
    config: Environment lookup, well-known paths, and settings.
    exceptions: Exception hierarchy with exit-code mapping.
"""

__version__ = "0.1.0"
