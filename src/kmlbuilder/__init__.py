__version__ = "v1.0.0"


__all__ = ["__version__", "builder", "cli", "config", "constants", "kml", "models", "runner", "search"]

from . import builder
from . import cli
from . import config
from . import constants
from . import kml
from . import models
from . import runner
from . import search
