"""
DTOs de autenticacion de operadores (OAuth de Airtable + JWT propio).
"""
from typing import Optional
from pydantic import BaseModel, Field


class AuthUrlResponseDTO(BaseModel):
    auth_url: str
    state: str


class OAuthCallbackDTO(BaseModel):
    code: str = Field(..., min_length=1, description="Authorization code devuelto por Airtable")
    state: str = Field(..., min_length=1, description="State emitido por /auth/airtable/auth-url")


class CurrentUserDTO(BaseModel):
    id: int
    name: Optional[str] = None
    airtable_user_id: Optional[str] = None
    has_airtable_oauth: bool


class TokenResponseDTO(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUserDTO


class MessageResponseDTO(BaseModel):
    success: bool
    message: str
