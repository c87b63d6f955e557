from .leader_swaps import LeaderSwapWatcher, LeaderSwapWatcherConfig
from .limit_orders import LimitOrderScanner
from .pending_orders import PendingOrderProcessor
from .idea_posts import IdeaPostConfig, IdeaPostProcessor

__all__ = [
    "LeaderSwapWatcher",
    "LeaderSwapWatcherConfig",
    "LimitOrderScanner",
    "PendingOrderProcessor",
    "IdeaPostConfig",
    "IdeaPostProcessor",
]
