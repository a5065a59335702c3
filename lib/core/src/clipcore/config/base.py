# region Docstring
"""
clipcore.config.base

Environment detection and application path utilities.

Overview:
- Provides a utility class for detecting the current application environment
    (production, Docker, or development) based on environment variables or
    path-based heuristics.
- Exposes module-level constants for commonly needed configuration values
    such as application root directory, environment type, and the data directory
    where the history database and image backing files live.

Contents:
- Classes:
    - AppEnv:
        A utility class for environment detection and path resolution. Provides
        class methods to determine the current environment, retrieve the application
        root directory, and locate the data directory based on the detected
        environment.

- Module-level Constants:
    - APP_ROOT (Path): The resolved root directory of the application.
    - APP_ENV (Literal["prod", "docker", "dev"]): The detected application environment.
    - DATA_DIR (Path): The directory where history data is stored, resolved
        based on the current environment.

Environment Detection Logic:
- Priority 1: Checks the ENVIRONMENT environment variable for explicit configuration.
- Priority 2: Falls back to path-based detection:
    - Paths starting with "/app" indicate Docker environment.
    - Paths starting with "/srv" indicate production environment.
    - All other paths default to development environment.

Design Notes:
- Environment detection is performed at import time to ensure consistent behavior
    throughout the application lifecycle.
- CLIPDECK_HOME overrides the working-directory root, CLIPDECK_DATA_DIR overrides
    the development data directory.
"""
# endregion
# region Imports
from clipcore.imports import os, Path, Literal

# endregion
# region AppEnv Class


class AppEnv:
    """
    Application environment detection utility.

    Attributes:
        ROOT (Path): The root directory of the application. Defaults to the current working directory.
        PROD (Literal["prod"]): Constant representing the production environment.
        DOCKER (Literal["docker"]): Constant representing the Docker environment.
        DEV (Literal["dev"]): Constant representing the development environment.
    """

    ROOT: Path = Path(os.getenv("CLIPDECK_HOME", Path.cwd())).resolve()
    PROD: Literal["prod"] = "prod"
    DOCKER: Literal["docker"] = "docker"
    DEV: Literal["dev"] = "dev"

    @classmethod
    def environment(cls) -> Literal["prod", "docker", "dev"]:
        """Determine the current application environment."""
        if os.getenv("ENVIRONMENT") in {cls.PROD, cls.DOCKER, cls.DEV}:
            return os.getenv("ENVIRONMENT")

        calling_path = Path.cwd().as_posix()
        if calling_path.startswith("/app"):
            return cls.DOCKER
        elif calling_path.startswith("/srv"):
            return cls.PROD
        else:
            return cls.DEV

    @classmethod
    def app_root(cls) -> Path:
        """Get the application root directory."""
        return cls.ROOT

    @classmethod
    def data_dir(cls) -> Path:
        """Get the history data directory based on the environment."""
        if cls.environment() == cls.DOCKER:
            return Path("/data").resolve()
        elif cls.environment() == cls.PROD:
            return Path("/srv/clipdeck/data").resolve()
        else:
            return Path(
                os.getenv("CLIPDECK_DATA_DIR", cls.ROOT / ".cache" / "clipdeck")
            ).resolve()


# endregion
# region Module-level Constants

APP_ROOT: Path = AppEnv.app_root()
"""[Path] Root directory of the application."""
APP_ENV: Literal["prod", "docker", "dev"] = AppEnv.environment()
"""[Literal] Environment type."""
DATA_DIR: Path = AppEnv.data_dir()
"""[Path] Directory holding the history database and clipboard images."""
# endregion


__all__ = [
    "APP_ENV",
    "APP_ROOT",
    "DATA_DIR",
    "AppEnv",
]
