"""Comandos de mantenimiento: ``python -m sistema_escolar.cli <comando>``."""

import argparse
import json
import sys

from sistema_escolar.config.env_check import verificar_entorno


def cmd_verificar_entorno(args) -> int:
    resultado = verificar_entorno()

    print("🔍 Verificando variables de entorno...\n")
    for nombre, valor in resultado.validas.items():
        print(f"  ✅ {nombre}: {valor}")
    for nombre, mensaje in resultado.advertencias.items():
        print(f"  ⚠️ {nombre}: {mensaje}")
    for nombre, mensaje in resultado.errores.items():
        print(f"  ❌ {nombre}: {mensaje}")

    if resultado.ok:
        print("\n✅ Configuración válida")
        return 0
    print(f"\n❌ {len(resultado.errores)} variable(s) con errores")
    return 1


def _sesion(args):
    # Importación tardía: Settings exige DATABASE_URL y SECRET_KEY
    from sistema_escolar.config.database import SessionLocal, configure_engine, init_db
    from sistema_escolar.config.logging_config import configure_logging

    configure_logging(args.log_level)
    configure_engine()
    init_db()
    return SessionLocal()


def cmd_sembrar(args) -> int:
    from sistema_escolar.core.seeder import seed_database

    with _sesion(args) as db:
        creados = seed_database(db)
    print(f"🌱 Registros creados: {creados}")
    return 0


def cmd_purgar(args) -> int:
    from sistema_escolar.core.purga import USUARIO_PROTEGIDO, purgar_base_de_datos

    if not args.yes:
        print(f"⚠️ Se borrarán TODOS los datos excepto el usuario '{USUARIO_PROTEGIDO}'.")
        respuesta = input("Escribe 'yes' para continuar: ")
        if respuesta.strip().lower() != "yes":
            print("Operación cancelada")
            return 1

    with _sesion(args) as db:
        conteos = purgar_base_de_datos(db)
    for tabla, filas in conteos.items():
        print(f"  🗑️ {tabla}: {filas}")
    print("✅ Purga completada")
    return 0


def cmd_marcar_cursos_diagnostico(args) -> int:
    from sistema_escolar.core.cursos_especiales import marcar_cursos_diagnostico

    with _sesion(args) as db:
        marcados = marcar_cursos_diagnostico(db)
    print(f"✅ {marcados} curso(s) marcados como completados por diagnóstico")
    return 0


def cmd_diagnostico_periodos(args) -> int:
    from sistema_escolar.core.reportes import diagnostico_periodos

    with _sesion(args) as db:
        reporte = diagnostico_periodos(db)
    print(json.dumps(reporte, indent=2, default=str, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sistema_escolar", description="Herramientas de mantenimiento"
    )
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="comando", required=True)

    sub.add_parser("verificar-entorno", help="Validar variables de entorno").set_defaults(
        func=cmd_verificar_entorno
    )
    sub.add_parser("sembrar", help="Cargar datos iniciales").set_defaults(func=cmd_sembrar)

    purgar = sub.add_parser("purgar", help="Borrar todos los datos excepto admin")
    purgar.add_argument("--yes", action="store_true", help="No pedir confirmación")
    purgar.set_defaults(func=cmd_purgar)

    sub.add_parser(
        "marcar-cursos-diagnostico", help="Marcar cursos acreditados por diagnóstico"
    ).set_defaults(func=cmd_marcar_cursos_diagnostico)
    sub.add_parser(
        "diagnostico-periodos", help="Reporte de disponibilidad de períodos de examen"
    ).set_defaults(func=cmd_diagnostico_periodos)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
