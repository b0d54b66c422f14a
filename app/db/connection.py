# app/db/connection.py
"""
Clase Database para gestión exclusiva de conexiones a la base de datos local.

Esta clase maneja únicamente el engine, la fábrica de sesiones y el ciclo de
vida de las conexiones. Las operaciones de negocio viven en los repositorios.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.db.models import Base
from app.utils.error_handler import DatabaseException

logger = logging.getLogger(__name__)


class Database:
    """
    Gestión de conexiones a la base de datos (SQLAlchemy async).

    Se crea una instancia durante el arranque de la aplicación y se inyecta
    en los repositorios.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Inicializa la clase Database.

        Args:
            url: URL de conexión SQLAlchemy (driver asíncrono)
            echo: Si loggear las queries SQL
        """
        self.url = url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[sessionmaker] = None
        self._connection_tested = False

    async def initialize(self, create_tables: bool = True):
        """
        Inicializa el engine de base de datos y crea las tablas si se pide.

        Args:
            create_tables: Si ejecutar metadata.create_all

        Raises:
            DatabaseException: Si falla la inicialización
        """
        if self.engine is not None:
            logger.info("Database connection already initialized")
            return

        try:
            logger.info("Initializing database connection...")

            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,
                future=True,
            )

            self.session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=True, autocommit=False
            )

            if create_tables:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables ensured")

            await self._test_connection()

            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            await self._cleanup_failed_initialization()
            raise DatabaseException(
                message=f"Failed to initialize database connection: {str(e)}",
                operation="initialization",
            ) from e

    async def _test_connection(self):
        """
        Prueba la conexión a la base de datos.

        Raises:
            DatabaseException: Si la prueba devuelve un valor inesperado
        """
        async with self.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            if result.scalar() != 1:
                raise DatabaseException(message="Connection test returned unexpected value", operation="test")
        self._connection_tested = True

    async def _cleanup_failed_initialization(self):
        """Limpia recursos en caso de fallo de inicialización."""
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        self._connection_tested = False

    def get_session(self) -> AsyncSession:
        """
        Obtiene una nueva sesión de base de datos.

        Returns:
            AsyncSession: Sesión asíncrona de SQLAlchemy

        Raises:
            DatabaseException: Si no hay conexión inicializada
        """
        if self.session_factory is None:
            raise DatabaseException(
                message="Database connection not initialized. Call initialize() first.",
                operation="session_creation",
            )

        return self.session_factory()

    def is_initialized(self) -> bool:
        """
        Verifica si la conexión está inicializada.

        Returns:
            bool: True si está inicializada y probada
        """
        return self.engine is not None and self.session_factory is not None and self._connection_tested

    async def test_connection(self) -> bool:
        """
        Prueba la conexión a la base de datos de forma no destructiva.

        Returns:
            bool: True si la conexión funciona correctamente
        """
        if not self.is_initialized():
            return False

        try:
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def close(self):
        """Cierra el engine y libera el pool de conexiones."""
        if self.engine is not None:
            logger.info("Closing database connection...")
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            self._connection_tested = False
            logger.info("Database connection closed")
