from pydantic import BaseModel

from .comun import EntradaBase


class UserLogin(EntradaBase):
    username: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    rol: str
