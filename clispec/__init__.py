__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'clispec'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

import logging

from .specs import *
from .normalizer import *
from .suggestions import *
from .formatting import *
from .constraints import *
from .faults import *
from .parser import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

# Library logging stays silent unless the host application configures it.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    "__path__",
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the specifications
__all__ += specs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the normalizer
__all__ += normalizer.__all__  # type: ignore[attr-defined]
# Load the exposed API of the suggestion engine
__all__ += suggestions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the formatter
__all__ += formatting.__all__  # type: ignore[attr-defined]
# Load the exposed API of the constraint validator
__all__ += constraints.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += parser.__all__  # type: ignore[attr-defined]
