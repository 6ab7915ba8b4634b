from base_snapshot.auth.service import AuthService, AuthState, OAuthTokens, auth_state_for
from base_snapshot.auth.store import (
    JsonFileTokenStore,
    MemoryTokenStore,
    TokenStore,
    create_token_store,
)
from base_snapshot.auth.cookie import decode_tokens, encode_tokens

__all__ = [
    'AuthService',
    'AuthState',
    'OAuthTokens',
    'auth_state_for',
    'TokenStore',
    'MemoryTokenStore',
    'JsonFileTokenStore',
    'create_token_store',
    'encode_tokens',
    'decode_tokens',
]
