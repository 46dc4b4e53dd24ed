from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from biblestudy.database.collections import get_collection
from biblestudy.utils.firebase_verify import verify_firebase_token

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    Dependency to get current authenticated user from Firebase token

    Raises:
        HTTPException: If token is invalid or user not found
    """
    token_data = await verify_firebase_token(credentials.credentials)

    users_collection = get_collection("users")
    user = await users_collection.find_one(
        {"uid": token_data["uid"]},
        sort=[("updated_at", -1), ("_id", -1)],
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found in database"
        )

    return user


async def get_current_admin(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """
    Dependency to ensure current user may manage registrants and groups

    Raises:
        HTTPException: If user is not an admin
    """
    if current_user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
