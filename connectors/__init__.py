"""
connectors — Spotify OAuth integration.

Provides:
  • OAuth2 auth-URL generation and the /login, /callback routes
  • Callback handling (code → token exchange → Spotify user id)
  • Per-user token storage and explicit refresh
  • Fernet encryption of tokens at rest
"""
