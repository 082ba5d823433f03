from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from sistema_escolar.config.database import get_db
from sistema_escolar.core.exceptions import NotFoundError, PermissionDeniedError
from sistema_escolar.core.security import verify_token
from sistema_escolar.models.enums import RolUsuario
from sistema_escolar.crud.estudiante import estudiante as crud_estudiante
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.usuario import Usuario

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Usuario:
    """
    Obtener usuario actual desde el token JWT
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    usuario_id = verify_token(credentials.credentials)
    if usuario_id is None:
        raise credentials_exception

    user = db.query(Usuario).filter(Usuario.id == usuario_id).first()
    if user is None or not user.activo:
        raise credentials_exception

    return user


def require_roles(*roles: RolUsuario):
    def dependency(current_user: Usuario = Depends(get_current_user)) -> Usuario:
        if current_user.rol not in roles:
            raise PermissionDeniedError("No tienes permiso para realizar esta acción")
        return current_user

    return dependency


require_admin = require_roles(RolUsuario.ADMIN)


def get_current_estudiante(
    current_user: Usuario = Depends(require_roles(RolUsuario.STUDENT)),
    db: Session = Depends(get_db),
) -> Estudiante:
    estudiante = crud_estudiante.get_by_usuario(db, usuario_id=current_user.id)
    if estudiante is None:
        raise NotFoundError("No hay un estudiante asociado a este usuario")
    return estudiante
