"""
Script para crear las tablas de la API (catalogo, historial y operadores).

Las tablas del catalogo y del historial tambien las crean los pipelines de
sync al arrancar; este script sirve para levantar una base vacia antes de
usar la API.
"""
import asyncio
from loguru import logger

from app.infrastructure.database.session import close_db, init_db


async def main():
    logger.info("Inicializando base de datos...")

    try:
        await init_db()
        logger.success("Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
