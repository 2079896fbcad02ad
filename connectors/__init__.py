"""
connectors — OAuth login providers.

Provides a small connector framework that handles:
  • OAuth2 consent-URL generation
  • Callback handling (code → token → profile)

Each provider (Google, …) is a subclass of BaseConnector.
"""
