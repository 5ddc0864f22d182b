"""Spotify OAuth configuration using authlib Starlette integration."""

from authlib.integrations.starlette_client import OAuth

from royally_tuned.config import settings

oauth = OAuth()

# Spotify: authorization-code flow, manual endpoint configuration
oauth.register(
    name="spotify",
    client_id=settings.spotify_client_id,
    client_secret=settings.spotify_client_secret,
    authorize_url="https://accounts.spotify.com/authorize",
    access_token_url="https://accounts.spotify.com/api/token",
    api_base_url="https://api.spotify.com/v1/",
    client_kwargs={
        "scope": settings.spotify_scope,
        "token_endpoint_auth_method": "client_secret_basic",
    },
)
