#!/usr/bin/env python3
"""
🔐 Thread-Safe Configuration Management for BWLaunch
Provides thread-safe config operations to prevent race conditions between:
- Flask request handlers (main thread)
- Dark mode monitor (background thread)
- Favorites reconciliation (catalog worker thread)
- Multiple concurrent API requests
"""

import copy
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class ConfigTransaction:
    """Represents a configuration transaction with rollback capability."""
    original_config: Dict[str, Any]
    new_config: Dict[str, Any]
    timestamp: float
    thread_id: str
    operation: str


def _fallback_config(error: Exception) -> Dict[str, Any]:
    from ..config_schema import LauncherConfig
    config = LauncherConfig().to_dict()
    config["_error"] = f"Config load failed: {error}"
    return config


class ThreadSafeConfigManager:
    """
    Thread-safe configuration manager.

    Features:
    - Read-write locks for concurrent readers
    - Transaction support with rollback
    - Change notifications for components
    - Thread-local caching, invalidated by a save generation counter
    """

    def __init__(self, base_config_manager, cache_ttl: float = 1.0):
        """
        Initialize thread-safe wrapper around existing config manager.

        Args:
            base_config_manager: Any object with ``load_config()`` and ``save_config(config)``
            cache_ttl: Seconds a loaded config may be served from cache
        """
        self._base_manager = base_config_manager
        self._lock = threading.RLock()
        self._transaction_lock = threading.RLock()
        self._read_write_lock = ReadWriteLock()
        self._config_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0
        self._cache_ttl: float = cache_ttl
        self._generation: int = 0
        self._change_listeners: list[Callable[[Dict[str, Any]], None]] = []
        self._transaction_history: list[ConfigTransaction] = []
        self._max_history: int = 10
        self._logger = logging.getLogger('thread_safe_config')

        self._thread_local = threading.local()

        self._logger.info("🔐 Thread-safe config manager initialized")

    @property
    def base_manager(self):
        return self._base_manager

    def add_change_listener(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """
        Add a callback to be notified when config changes.

        Args:
            callback: Function to call with new config when it changes
        """
        with self._lock:
            if callback not in self._change_listeners:
                self._change_listeners.append(callback)
                self._logger.debug(f"📢 Added config change listener: {getattr(callback, '__name__', callback)}")

    def remove_change_listener(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Remove a config change listener."""
        with self._lock:
            if callback in self._change_listeners:
                self._change_listeners.remove(callback)
                self._logger.debug(f"📢 Removed config change listener: {getattr(callback, '__name__', callback)}")

    def _notify_listeners(self, new_config: Dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._change_listeners)
        for listener in listeners:
            try:
                listener(copy.deepcopy(new_config))
            except Exception as e:
                self._logger.error(f"❌ Error in config change listener {getattr(listener, '__name__', listener)}: {e}")

    def _is_cache_valid(self) -> bool:
        return (
            self._config_cache is not None and
            time.time() - self._cache_timestamp < self._cache_ttl
        )

    def _update_cache(self, config: Dict[str, Any]) -> None:
        self._config_cache = copy.deepcopy(config)
        self._cache_timestamp = time.time()

    def _thread_cache_hit(self) -> Optional[Dict[str, Any]]:
        entry = getattr(self._thread_local, 'config_cache', None)
        if entry is None:
            return None
        if entry['generation'] != self._generation:
            return None
        if time.time() - entry['timestamp'] >= self._cache_ttl:
            return None
        return entry['config']

    def load_config(self, use_cache: bool = True) -> Dict[str, Any]:
        """
        Load configuration with thread-safe caching.

        Args:
            use_cache: Whether to use cached config if available

        Returns:
            Configuration dictionary (deep copy for thread safety)
        """
        thread_id = threading.current_thread().name

        if use_cache:
            cached = self._thread_cache_hit()
            if cached is not None:
                return copy.deepcopy(cached)

        with self._read_write_lock.read_lock():
            try:
                with self._lock:
                    generation = self._generation
                    if use_cache and self._is_cache_valid():
                        config = copy.deepcopy(self._config_cache)
                    else:
                        config = None

                if config is None:
                    self._logger.debug(f"💽 Loading config from disk for {thread_id}")
                    config = self._base_manager.load_config()
                    with self._lock:
                        self._update_cache(config)

                self._thread_local.config_cache = {
                    'config': copy.deepcopy(config),
                    'timestamp': time.time(),
                    'generation': generation,
                }

                return copy.deepcopy(config)

            except Exception as e:
                self._logger.error(f"❌ Error loading config for {thread_id}: {e}")
                # Defaults rather than crashing
                return _fallback_config(e)

    def save_config(self, config: Dict[str, Any], notify_listeners: bool = True) -> bool:
        """
        Save configuration with thread-safe operations.

        Args:
            config: Configuration to save
            notify_listeners: Whether to notify change listeners

        Returns:
            True if saved successfully
        """
        thread_id = threading.current_thread().name
        operation = f"save_from_{thread_id}"

        with self._read_write_lock.write_lock():
            try:
                original_config = self.load_config(use_cache=False)
                transaction = ConfigTransaction(
                    original_config=copy.deepcopy(original_config),
                    new_config=copy.deepcopy(config),
                    timestamp=time.time(),
                    thread_id=thread_id,
                    operation=operation
                )

                success = self._base_manager.save_config(config)
                if not success:
                    self._logger.error(f"❌ Config save failed for {thread_id}")
                    return False

                with self._lock:
                    self._generation += 1
                    self._update_cache(config)
                    if hasattr(self._thread_local, 'config_cache'):
                        del self._thread_local.config_cache

                    self._transaction_history.append(transaction)
                    if len(self._transaction_history) > self._max_history:
                        self._transaction_history.pop(0)

                self._logger.debug(f"✅ Config saved successfully by {thread_id}")

            except Exception as e:
                self._logger.error(f"❌ Error saving config for {thread_id}: {e}")
                return False

        if notify_listeners:
            self._notify_listeners(config)
        return True

    @contextmanager
    def config_transaction(self):
        """
        Context manager for atomic config operations.

        Other transactions wait until this one finishes, so a
        load-modify-save sequence is never interleaved with another.

        Usage:
            with config_manager.config_transaction() as transaction:
                config = transaction.load()
                config['some_field'] = 'new_value'
                transaction.save(config)
                # Rolled back on exception
        """
        with self._transaction_lock:
            transaction = ConfigTransactionContext(self)
            try:
                yield transaction
            except Exception as e:
                self._logger.error(f"❌ Transaction failed, rolling back: {e}")
                transaction.rollback()
                raise

    def get_config_value(self, key: str, default: Any = None) -> Any:
        """
        Get a specific config value thread-safely.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        config = self.load_config()
        return config.get(key, default)

    def set_config_value(self, key: str, value: Any) -> bool:
        """
        Set a specific config value thread-safely.

        Returns:
            True if saved successfully
        """
        with self.config_transaction() as transaction:
            config = transaction.load()
            config[key] = value
            return transaction.save(config)

    def get_transaction_history(self) -> list[ConfigTransaction]:
        with self._lock:
            return copy.deepcopy(self._transaction_history)

    def invalidate_cache(self) -> None:
        """Force invalidation of all caches."""
        with self._lock:
            self._generation += 1
            self._config_cache = None
            self._cache_timestamp = 0
            if hasattr(self._thread_local, 'config_cache'):
                del self._thread_local.config_cache
            self._logger.info("🗑️ All config caches invalidated")

    def get_stats(self) -> Dict[str, Any]:
        """Get thread-safety statistics."""
        with self._lock:
            return {
                "cache_valid": self._is_cache_valid(),
                "cache_age_seconds": time.time() - self._cache_timestamp if self._config_cache else None,
                "generation": self._generation,
                "transaction_history_count": len(self._transaction_history),
                "change_listeners_count": len(self._change_listeners),
                "current_thread": threading.current_thread().name,
                "active_threads": threading.active_count(),
                "has_thread_local_cache": hasattr(self._thread_local, 'config_cache')
            }


class ConfigTransactionContext:
    """Context for atomic configuration transactions."""

    def __init__(self, config_manager: ThreadSafeConfigManager):
        self._config_manager = config_manager
        self._original_config: Optional[Dict[str, Any]] = None
        self._pending_save: bool = False

    def load(self) -> Dict[str, Any]:
        """Load config within transaction."""
        config = self._config_manager.load_config(use_cache=False)
        if self._original_config is None:
            self._original_config = copy.deepcopy(config)
        return config

    def save(self, config: Dict[str, Any]) -> bool:
        """Save config within transaction."""
        self._pending_save = True
        return self._config_manager.save_config(config)

    def rollback(self) -> bool:
        """Rollback to original config."""
        if self._pending_save and self._original_config is not None:
            return self._config_manager.save_config(self._original_config, notify_listeners=False)
        return False


class ReadWriteLock:
    """
    Reader-writer lock.
    Allows multiple readers OR one writer (but not both simultaneously).
    """

    def __init__(self):
        self._read_ready = threading.Condition(threading.RLock())
        self._readers = 0

    @contextmanager
    def read_lock(self):
        """Acquire read lock (allows multiple concurrent readers)."""
        self._read_ready.acquire()
        try:
            self._readers += 1
        finally:
            self._read_ready.release()

        try:
            yield
        finally:
            self._read_ready.acquire()
            try:
                self._readers -= 1
                if self._readers == 0:
                    self._read_ready.notify_all()
            finally:
                self._read_ready.release()

    @contextmanager
    def write_lock(self):
        """Acquire write lock (exclusive access)."""
        self._read_ready.acquire()
        try:
            while self._readers > 0:
                self._read_ready.wait()
            yield
        finally:
            self._read_ready.release()


# Global thread-safe config manager
_thread_safe_config_manager: Optional[ThreadSafeConfigManager] = None


def initialize_thread_safe_config(base_config_manager) -> ThreadSafeConfigManager:
    """Initialize the global thread-safe config manager."""
    global _thread_safe_config_manager
    _thread_safe_config_manager = ThreadSafeConfigManager(base_config_manager)
    return _thread_safe_config_manager


def get_thread_safe_config_manager() -> ThreadSafeConfigManager:
    """Get the global thread-safe config manager."""
    if _thread_safe_config_manager is None:
        raise RuntimeError("Thread-safe config manager not initialized. Call initialize_thread_safe_config() first.")
    return _thread_safe_config_manager


def load_config_safe() -> Dict[str, Any]:
    """Load configuration thread-safely."""
    return get_thread_safe_config_manager().load_config()


def save_config_safe(config: Dict[str, Any]) -> bool:
    """Save configuration thread-safely."""
    return get_thread_safe_config_manager().save_config(config)

