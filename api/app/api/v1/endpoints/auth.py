"""
Endpoints de autenticacion de operadores.

Los operadores se identifican con OAuth de Airtable (PKCE). El callback
emite un JWT propio que protege /airtable y /revision-history.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.v1.dependencies.auth_deps import get_current_operator
from app.api.v1.dependencies.use_case_deps import get_auth_use_cases
from app.application.dto.auth_dto import (
    AuthUrlResponseDTO,
    CurrentUserDTO,
    MessageResponseDTO,
    OAuthCallbackDTO,
    TokenResponseDTO,
)
from app.application.use_cases.auth_use_cases import AuthUseCases, to_current_user_dto
from app.infrastructure.database.models import SystemUserModel


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get(
    "/airtable/auth-url",
    response_model=AuthUrlResponseDTO,
    summary="Obtener URL de autorizacion OAuth de Airtable"
)
def get_airtable_auth_url(
    use_cases: AuthUseCases = Depends(get_auth_use_cases),
) -> AuthUrlResponseDTO:
    return use_cases.build_auth_url()


@router.post(
    "/airtable/callback",
    response_model=TokenResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Completar OAuth de Airtable y obtener token de acceso"
)
async def airtable_callback(
    dto: OAuthCallbackDTO,
    use_cases: AuthUseCases = Depends(get_auth_use_cases),
) -> TokenResponseDTO:
    return await use_cases.handle_callback(code=dto.code, state=dto.state)


@router.get(
    "/current-user",
    response_model=CurrentUserDTO,
    summary="Operador autenticado"
)
async def current_user(
    operator: SystemUserModel = Depends(get_current_operator),
) -> CurrentUserDTO:
    return to_current_user_dto(operator)


@router.post(
    "/airtable/disconnect",
    response_model=MessageResponseDTO,
    summary="Desconectar la cuenta de Airtable"
)
async def disconnect_airtable(
    operator: SystemUserModel = Depends(get_current_operator),
    use_cases: AuthUseCases = Depends(get_auth_use_cases),
) -> MessageResponseDTO:
    await use_cases.disconnect(operator)
    return MessageResponseDTO(success=True, message="Airtable desconectado")
