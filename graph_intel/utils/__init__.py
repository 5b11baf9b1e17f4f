"""
Utility Modules

Configuration loading and path result caching.
"""

from graph_intel.utils.config import load_config, Config
from graph_intel.utils.cache import ResultCache, make_cache_key

__all__ = ["load_config", "Config", "ResultCache", "make_cache_key"]
