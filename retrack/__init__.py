from importlib.metadata import version

__version__ = version("retrack")


# proxy types register themselves on import, in order of precedence
from . import dict_proxy, list_proxy, object_proxy
from .batch import batch, flush_updates
from .cell import (
    Cell,
    ShallowCell,
    create_cell,
    create_shallow_cell,
    is_cell,
    is_shallow_cell,
    unref,
)
from .clone import deep_clone
from .computed import Computed, computed
from .config import Config
from .context import (
    enable_debug,
    get_config,
    get_effect_stats,
    reset_all,
    set_config,
)
from .init import init, loop_factory
from .observer import Observer, effect, run_observer
from .proxy import is_observed, observe, to_raw
from .scheduler import scheduler
from .scope import EffectScope, create_scope
from .watch import (
    OnCleanup,
    Watcher,
    WrongNumberOfArgumentsError,
    watch,
    watch_cell,
    watch_observed,
)
