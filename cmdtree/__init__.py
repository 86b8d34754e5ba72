__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'cmdtree'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

__import__("logging").getLogger(__name__).addHandler(__import__("logging").NullHandler())

from .choices import *
from .decorators import *
from .definitions import *
from .engine import *
from .faults import *
from .messages import *
from .nodes import *
from .outcomes import *
from .parameters import *
from .senders import *
from .serializers import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of every module
__all__ += choices.__all__  # type: ignore[attr-defined]
__all__ += decorators.__all__  # type: ignore[attr-defined]
__all__ += definitions.__all__  # type: ignore[attr-defined]
__all__ += engine.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
__all__ += messages.__all__  # type: ignore[attr-defined]
__all__ += nodes.__all__  # type: ignore[attr-defined]
__all__ += outcomes.__all__  # type: ignore[attr-defined]
__all__ += parameters.__all__  # type: ignore[attr-defined]
__all__ += senders.__all__  # type: ignore[attr-defined]
__all__ += serializers.__all__  # type: ignore[attr-defined]
