from importlib import metadata

from .cli import main
from .env_loader import load_env

try:
    __version__ = metadata.version("errlocal")
except metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__", "main", "load_env"]
