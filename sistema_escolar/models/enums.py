import enum


class RolUsuario(str, enum.Enum):
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class EstatusEstudiante(str, enum.Enum):
    ACTIVO = "ACTIVO"
    INACTIVO = "INACTIVO"
    EGRESADO = "EGRESADO"


class EstatusInscripcion(str, enum.Enum):
    PENDIENTE_PAGO = "PENDIENTE_PAGO"
    INSCRITO = "INSCRITO"
    EN_CURSO = "EN_CURSO"
    APROBADO = "APROBADO"
    REPROBADO = "REPROBADO"
    BAJA = "BAJA"
    CANCELADO = "CANCELADO"


class EstatusPeriodoExamen(str, enum.Enum):
    PLANEADO = "PLANEADO"
    ABIERTO = "ABIERTO"
    CERRADO = "CERRADO"
    EN_PROCESO = "EN_PROCESO"
    FINALIZADO = "FINALIZADO"


class Modalidad(str, enum.Enum):
    PRESENCIAL = "PRESENCIAL"
    EN_LINEA = "EN_LINEA"
    HIBRIDA = "HIBRIDA"


class TipoCurso(str, enum.Enum):
    INGLES = "INGLES"
    VERANO = "VERANO"
    EXTRACURRICULAR = "EXTRACURRICULAR"
    TALLER = "TALLER"
    SEMINARIO = "SEMINARIO"
    DIPLOMADO = "DIPLOMADO"
    CERTIFICACION = "CERTIFICACION"


# Un registro en estos estados ya no bloquea una nueva solicitud
ESTATUS_INACTIVOS = frozenset(
    {
        EstatusInscripcion.REPROBADO,
        EstatusInscripcion.BAJA,
        EstatusInscripcion.CANCELADO,
    }
)
