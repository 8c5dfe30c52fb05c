"""blinken: motion-JPEG video as braille art, served over telnet."""
# pylint: disable=wildcard-import,undefined-variable
from .server import *           # noqa
from .negotiate import *        # noqa
from .stream_writer import *    # noqa
from .mjpeg import *            # noqa
from .render import *           # noqa
from .playback import *         # noqa
from .watcher import *          # noqa
from .telopt import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    server.__all__ +
    negotiate.__all__ +
    stream_writer.__all__ +
    mjpeg.__all__ +
    render.__all__ +
    playback.__all__ +
    watcher.__all__ +
    telopt.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
