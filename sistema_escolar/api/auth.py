import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_user
from sistema_escolar.config.database import get_db
from sistema_escolar.config.settings import settings
from sistema_escolar.core.security import create_access_token, verify_password
from sistema_escolar.models.usuario import Usuario
from sistema_escolar.schemas.auth import Token, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter()


def authenticate_user(db: Session, username: str, password: str) -> Optional[Usuario]:
    """Autenticar usuario por nombre de usuario y contraseña"""
    user = db.query(Usuario).filter(Usuario.username == username).first()
    if not user or not user.activo:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


@router.post("/login", response_model=Token)
def login_for_access_token(user_data: UserLogin, db: Session = Depends(get_db)):
    """
    Endpoint de login que devuelve un JWT token
    """
    user = authenticate_user(db, user_data.username, user_data.password)
    if not user:
        logger.info("Intento de login fallido para %s", user_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(subject=user.id, expires_delta=access_token_expires)

    return {"access_token": access_token, "token_type": "bearer", "rol": user.rol.value}


@router.get("/me")
def get_current_user_info(current_user: Usuario = Depends(get_current_user)):
    """
    Obtener información del usuario actual
    """
    return {
        "id": current_user.id,
        "username": current_user.username,
        "rol": current_user.rol.value,
        "email": current_user.email,
    }
