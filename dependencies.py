# dependencies.py
"""
Request-scoped dependencies shared by the routers.

Authentication itself (login, registration) happens elsewhere; billing only
verifies the bearer token and reads the owner's id from its ``id`` claim.
"""
import os

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from utils.logging import add_context

load_dotenv()
SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
          return payload
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


async def get_owner_id(token: dict = Depends(verify_token)) -> int:
     """The authenticated owner. Every billing query is scoped to it."""
     owner_id = token.get("id")
     if owner_id is None:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token carries no owner id")
     try:
          owner_id = int(owner_id)
     except (TypeError, ValueError):
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid owner id")
     add_context(owner_id=owner_id)
     return owner_id
