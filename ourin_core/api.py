"""
Chat Token API Integration
==========================
FastAPI helpers for protecting routes with chat tokens and issuing them.

Two trust capabilities stay separate here:
    - Issuing a token requires the platform session (``get_session_identity``).
    - Every other privileged route requires a verified chat token.

Usage:
    verifier = ChatTokenVerifier.from_config()
    require_token = ChatTokenAuth(verifier)
    require_user = ChatTokenAuth(verifier, require_real_user=True)

    app.include_router(create_chat_token_router(get_session_identity))

    @app.post("/api/chat")
    async def chat(identity: str = Depends(require_token)):
        ...
"""

from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
import structlog

from .chat_token.headers import extract_chat_token
from .chat_token.issuer import ChatTokenIssuer
from .chat_token.verifier import ChatTokenVerifier
from .config import ChatAuthConfig
from .errors import (
    ConfigurationError,
    InvalidIdentityError,
    NOT_AUTHENTICATED_MESSAGE,
    NO_TOKEN_MESSAGE,
    SIGN_IN_REQUIRED_MESSAGE,
    create_configuration_error,
    create_unauthorized_error,
)

logger = structlog.get_logger(__name__)


class ChatTokenResponse(BaseModel):
    token: str
    timestamp: int
    isAuthenticated: bool = True


async def _read_json_body(request: Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except (ValueError, RecursionError):
        return None
    return body if isinstance(body, dict) else None


async def authenticate_request(
    request: Request,
    verifier: ChatTokenVerifier,
    require_real_user: bool = False,
    anonymous_identity: str = "anonymous",
) -> str:
    """
    Verify the chat token carried by a request.

    Args:
        request: Incoming request
        verifier: Verifier holding the shared secret
        require_real_user: Reject the anonymous identity
        anonymous_identity: Sentinel identity of not-yet-upgraded users

    Returns:
        Verified identity (also stored on ``request.state.chat_identity``)

    Raises:
        HTTPException: 401 with a reason-specific message
    """
    token = extract_chat_token(request.headers)
    if token is None:
        token = extract_chat_token({}, await _read_json_body(request))

    if not token:
        logger.info("chat_token_missing", path=request.url.path)
        raise HTTPException(status_code=401, detail={"error": NO_TOKEN_MESSAGE})

    fallback = SIGN_IN_REQUIRED_MESSAGE if require_real_user else "Unauthorized - invalid token"
    result = verifier.verify(token)
    if not result.valid:
        raise create_unauthorized_error(result.reason, fallback=fallback)

    if require_real_user and (not result.identity or result.identity == anonymous_identity):
        logger.info("chat_token_anonymous_rejected", path=request.url.path)
        raise create_unauthorized_error(None, fallback=SIGN_IN_REQUIRED_MESSAGE)

    request.state.chat_identity = result.identity
    return result.identity


class ChatTokenAuth:
    """
    FastAPI dependency requiring a valid chat token.

    Example:
        @app.post("/api/keys/save")
        async def save_key(identity: str = Depends(ChatTokenAuth(verifier, require_real_user=True))):
            ...
    """

    def __init__(
        self,
        verifier: ChatTokenVerifier,
        require_real_user: bool = False,
        anonymous_identity: str = "anonymous",
    ):
        self.verifier = verifier
        self.require_real_user = require_real_user
        self.anonymous_identity = anonymous_identity

    async def __call__(self, request: Request) -> str:
        return await authenticate_request(
            request,
            self.verifier,
            require_real_user=self.require_real_user,
            anonymous_identity=self.anonymous_identity,
        )


def create_chat_token_router(
    get_session_identity: Callable[..., Any],
    issuer: Optional[ChatTokenIssuer] = None,
    config: Optional[ChatAuthConfig] = None,
    path: str = "/chat-token",
) -> APIRouter:
    """
    Create a router exposing ``POST {path}`` to issue chat tokens.

    Args:
        get_session_identity: Dependency returning the identity of the
            platform session, or None when there is no session
        issuer: Pre-built issuer; if omitted one is built from ``config``
            on every request and a missing secret yields HTTP 500
        config: Configuration used when no issuer is given
        path: Route path

    Returns:
        APIRouter to include in the application
    """
    router = APIRouter(tags=["chat-auth"])

    @router.post(path, response_model=ChatTokenResponse)
    async def generate_chat_token(
        identity: Optional[str] = Depends(get_session_identity),
    ):
        if not identity:
            raise HTTPException(status_code=401, detail={"error": NOT_AUTHENTICATED_MESSAGE})

        try:
            token_issuer = issuer or ChatTokenIssuer.from_config(config)
            issued = token_issuer.generate_chat_token(identity)
        except ConfigurationError as e:
            raise create_configuration_error(str(e))
        except InvalidIdentityError as e:
            logger.error("chat_token_identity_rejected", error=str(e))
            raise HTTPException(
                status_code=400,
                detail={"error": "Identity cannot be used for chat tokens"},
            )

        return issued.to_dict()

    return router
