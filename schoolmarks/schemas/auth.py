"""
Pydantic schemas for authentication.
"""

from pydantic import BaseModel


class UserLogin(BaseModel):
    email: str
    password: str = ""
