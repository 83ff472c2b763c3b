from typing import Optional

from pydantic import BaseModel, Field

class Message(BaseModel):
    """A template split into prefix, comment and suffix, rendered back to back"""
    prefix: str = ""
    comment: str = ""
    suffix: str = ""

class TemplateSet(BaseModel):
    create: Message = Field(default_factory=Message)
    modify: Message = Field(default_factory=Message)
    remove: Message = Field(default_factory=Message)
    rename: Message = Field(default_factory=Message)

class Credentials(BaseModel):
    username: str = ""
    email: str = ""
    login_username: Optional[str] = None
    password: Optional[str] = None

    def has_login(self) -> bool:
        return bool(self.login_username) and bool(self.password)

    def has_identity(self) -> bool:
        return bool(self.username) and bool(self.email)
