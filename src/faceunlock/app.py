"""
Application root: builds and primes the data and session layer.

Usage:
    faceunlock            # or: python -m faceunlock.app

Every service is constructed here and handed to its consumers; nothing is
stored in module-level globals.
"""
import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from faceunlock.core.config import Settings, get_settings
from faceunlock.core.preferences import JsonPreferenceStore
from faceunlock.db.gateway import PersistenceGateway
from faceunlock.db.session import create_engine, create_schema, create_session_factory
from faceunlock.services.assets import FileAssetStore
from faceunlock.services.auth_service import SessionAuthController
from faceunlock.services.credentials import BcryptCredentialVerifier
from faceunlock.services.face_service import FaceCache
from faceunlock.services.options_service import OptionsCache
from faceunlock.services.unlock_log_service import UnlockLogService

logger = logging.getLogger(__name__)


@dataclass
class FaceUnlockApp:
    """The composed services, primed and ready for the view layer."""

    settings: Settings
    engine: AsyncEngine
    gateway: PersistenceGateway
    auth: SessionAuthController
    faces: FaceCache
    options: OptionsCache
    unlock_logs: UnlockLogService
    entry_allowed: bool = False

    async def close(self) -> None:
        await self.engine.dispose()


async def bootstrap(settings: Settings | None = None) -> FaceUnlockApp:
    """
    Construct every service and prime the caches once.

    Raises:
        PersistenceError: If a cache could not be loaded.
        MetadataDecodeError: If a stored face has malformed metadata.
    """
    settings = settings or get_settings()
    engine = create_engine(settings)
    try:
        await create_schema(engine)
        gateway = PersistenceGateway(create_session_factory(engine))

        auth = SessionAuthController(
            preferences=JsonPreferenceStore(settings.preferences_path),
            verifier=BcryptCredentialVerifier(rounds=settings.bcrypt_rounds),
        )
        faces = FaceCache(gateway, FileAssetStore(settings.faces_dir))
        options = OptionsCache(gateway)

        await options.initialize()
        await faces.initialize()
        entry_allowed = auth.initialize()
    except Exception:
        await engine.dispose()
        raise

    return FaceUnlockApp(
        settings=settings,
        engine=engine,
        gateway=gateway,
        auth=auth,
        faces=faces,
        options=options,
        unlock_logs=UnlockLogService(gateway),
        entry_allowed=entry_allowed,
    )


async def run() -> None:
    app = await bootstrap()
    try:
        logger.info(
            "Loaded %s faces and %s options; auth state: %s",
            len(app.faces.list_faces()),
            len(app.options.list_options()),
            app.auth.state.value,
        )
    finally:
        await app.close()


def main() -> None:
    """Entry point: prime the caches and report what was loaded."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run())


if __name__ == "__main__":
    main()
