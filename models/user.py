# models/user.py

from typing import Optional
from pydantic import BaseModel


# -------------------------------------------------
# Staff-managed accounts (/api/users)
# -------------------------------------------------
class UserCreate(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    branch: Optional[str] = None


class UserUpdate(BaseModel):
    userId: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    branch: Optional[str] = None
    status: Optional[str] = None


# -------------------------------------------------
# Self sign-up (homeowner portal)
# -------------------------------------------------
class SignupRequest(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
