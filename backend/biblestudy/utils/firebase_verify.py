import base64
import json
import logging
import os

import firebase_admin
from fastapi import HTTPException, status
from firebase_admin import auth, credentials

from biblestudy.config import settings

logger = logging.getLogger(__name__)

_firebase_app = None


def _load_credentials():
    if settings.firebase_credentials_base64:
        try:
            cred_json = base64.b64decode(settings.firebase_credentials_base64).decode("utf-8")
            cred = credentials.Certificate(json.loads(cred_json))
            logger.info("Firebase credentials loaded from base64 environment variable")
            return cred
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to load base64 credentials: {e}")

    candidates = [
        settings.firebase_credentials_path,
        os.path.join(os.getcwd(), "firebase-credentials.json"),
    ]
    for path in candidates:
        if path and os.path.exists(path):
            logger.info(f"Firebase credentials loaded from: {path}")
            return credentials.Certificate(path)
    return None


def initialize_firebase():
    """Initialize the Firebase Admin SDK once per process.

    Credentials come from FIREBASE_CREDENTIALS_BASE64 when set (cloud
    deployments), otherwise from FIREBASE_CREDENTIALS_PATH.
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    cred = _load_credentials()
    if cred is None:
        raise FileNotFoundError(
            "Firebase credentials not found. Please set FIREBASE_CREDENTIALS_BASE64 "
            "or FIREBASE_CREDENTIALS_PATH."
        )

    _firebase_app = firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin SDK initialized")
    return _firebase_app


async def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token data

    Args:
        token: Firebase ID token from client

    Returns:
        dict: Decoded token with user information

    Raises:
        HTTPException: If token is invalid or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token.startswith("Bearer "):
        token = token[7:]

    try:
        return auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (ValueError, auth.CertificateFetchError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
