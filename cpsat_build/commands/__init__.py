from .build import build
from .clean import clean
from .config import config
from .doctor import doctor
from .log import log
from .resolve import resolve
from .version import version
