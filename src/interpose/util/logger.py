import logging
from typing import Optional, Dict

class ConfigureLogger:
    """just syntactic sugar"""
    # constructor

    def __init__(self,
                 default_level: int = logging.INFO,
                 format: str = "[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d - %(message)s",
                 levels: Optional[Dict[str, int]] = None):
        logging.basicConfig(level=default_level, format=format)

        self.levels = dict(levels or {})
        for name, level in self.levels.items():
            logging.getLogger(name).setLevel(level)

    # public

    def trace_proxies(self, level: int = logging.DEBUG) -> "ConfigureLogger":
        """
        lower the level of all interpose loggers, e.g. to see every forwarded invocation
        """
        self.levels["interpose"] = level
        logging.getLogger("interpose").setLevel(level)

        return self
