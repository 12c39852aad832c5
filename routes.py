"""FastAPI routes for Photo Revive."""
import logging
from typing import Optional

from fastapi import BackgroundTasks, Cookie, Depends
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

import history
import pipeline
from config import ANON_COOKIE_NAME, get_api_token
from errors import AuthenticationError, ServiceError
from identity import authenticate, persist_anon_cookie, resolve_identity
from model_client import ReplicateClient
from models import User

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


class RestoreRequest(BaseModel):
    inputImage: str


class EditRequest(BaseModel):
    inputImage: str
    prompt: Optional[str] = None


def get_model_client() -> ReplicateClient:
    """Prediction client; the token is validated only when a call is made."""
    return ReplicateClient(api_token=get_api_token())


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[User]:
    """Resolve the bearer token to a user, or None for anonymous callers."""
    return authenticate(credentials.credentials if credentials else None)


def require_user(user: Optional[User] = Depends(current_user)) -> User:
    if not user:
        raise AuthenticationError("Unauthorized")
    return user


def _respond(result: pipeline.OperationResult, identity, background_tasks: BackgroundTasks):
    background_tasks.add_task(history.write_best_effort, result.history)
    response = JSONResponse({"output": result.output})
    persist_anon_cookie(response, identity)
    return response


def create_restoration(
    payload: RestoreRequest,
    background_tasks: BackgroundTasks,
    user: Optional[User] = Depends(current_user),
    anon_id: Optional[str] = Cookie(None, alias=ANON_COOKIE_NAME),
    client: ReplicateClient = Depends(get_model_client),
):
    """Restore a photo."""
    identity = resolve_identity(user, anon_id)
    try:
        result = pipeline.restore(identity, payload.inputImage, client)
    except ServiceError:
        raise
    except Exception as e:
        logger.exception("Error in POST /api/restore")
        raise ServiceError(str(e) or "Internal server error") from e
    return _respond(result, identity, background_tasks)


def list_restorations(user: User = Depends(require_user)):
    """List the caller's restorations, newest first."""
    return {"restorations": history.list_restorations(user.id)}


def create_edit(
    payload: EditRequest,
    background_tasks: BackgroundTasks,
    user: Optional[User] = Depends(current_user),
    anon_id: Optional[str] = Cookie(None, alias=ANON_COOKIE_NAME),
    client: ReplicateClient = Depends(get_model_client),
):
    """Edit a photo from a text prompt."""
    identity = resolve_identity(user, anon_id)
    try:
        result = pipeline.edit(identity, payload.inputImage, payload.prompt, client)
    except ServiceError:
        raise
    except Exception as e:
        logger.exception("Error in POST /api/edit")
        raise ServiceError(str(e) or "Internal server error") from e
    return _respond(result, identity, background_tasks)


def list_edits(user: User = Depends(require_user)):
    """List the caller's edits, newest first."""
    return {"edits": history.list_edits(user.id)}


def usage_stats(user: User = Depends(require_user)):
    """Per-feature totals and last-7-days counts for the caller."""
    return history.usage_stats(user.id)


def health_check():
    return {"status": "healthy"}
