# models/role.py

from typing import Optional, Union
from pydantic import BaseModel


class RoleCreate(BaseModel):
    rolename: Optional[str] = None


class RoleUpdate(BaseModel):
    roleId: Optional[Union[int, str]] = None
    rolename: Optional[str] = None
