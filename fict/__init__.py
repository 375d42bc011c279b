"""Fict: OAuth2 federated login and session issuance."""
