"""Thread-safe config manager tests."""

import threading

import pytest

from bwlaunch.utils.thread_safety import ReadWriteLock, ThreadSafeConfigManager


class TestLoadAndSave:
    def test_load_returns_independent_copies(self, config_store):
        first = config_store.load_config()
        first["favorites"].append("org.example.mail/Main")

        assert config_store.load_config()["favorites"] == []

    def test_save_persists_and_notifies(self, config_store, base_config):
        received = []
        config_store.add_change_listener(received.append)
        config = config_store.load_config()
        config["text_size"] = 24

        assert config_store.save_config(config) is True
        assert base_config.data["text_size"] == 24
        assert config_store.load_config()["text_size"] == 24
        assert [entry["text_size"] for entry in received] == [24]

    def test_save_without_notification(self, config_store):
        received = []
        config_store.add_change_listener(received.append)

        config_store.save_config(config_store.load_config(), notify_listeners=False)

        assert received == []

    def test_failed_save_reports_false(self, config_store, base_config):
        received = []
        config_store.add_change_listener(received.append)
        base_config.fail_saves = True
        generation = config_store.get_stats()["generation"]

        assert config_store.save_config({"text_size": 30}) is False
        assert received == []
        assert config_store.get_stats()["generation"] == generation

    def test_listener_errors_contained(self, config_store):
        received = []

        def broken(_config):
            raise RuntimeError("listener bug")

        config_store.add_change_listener(broken)
        config_store.add_change_listener(received.append)

        assert config_store.save_config(config_store.load_config()) is True
        assert len(received) == 1

    def test_removed_listener_not_called(self, config_store):
        received = []
        config_store.add_change_listener(received.append)
        config_store.remove_change_listener(received.append)

        config_store.save_config(config_store.load_config())

        assert received == []

    def test_load_failure_returns_defaults_with_error(self):
        class Broken:
            def load_config(self):
                raise IOError("disk gone")

        config = ThreadSafeConfigManager(Broken()).load_config()

        assert config["favorite_count"] == 5
        assert "disk gone" in config["_error"]


class TestCaching:
    def test_cached_until_invalidated(self, config_store, base_config):
        config_store.load_config()
        base_config.data["text_size"] = 40

        assert config_store.load_config()["text_size"] == 18
        assert config_store.load_config(use_cache=False)["text_size"] == 40

        base_config.data["text_size"] = 41
        config_store.invalidate_cache()
        assert config_store.load_config()["text_size"] == 41

    def test_save_from_other_thread_invalidates_local_cache(self, config_store):
        assert config_store.load_config()["text_size"] == 18

        def writer():
            config = config_store.load_config()
            config["text_size"] = 30
            config_store.save_config(config)

        thread = threading.Thread(target=writer)
        thread.start()
        thread.join(timeout=5)

        assert config_store.load_config()["text_size"] == 30

    def test_stats(self, config_store):
        config_store.load_config()
        config_store.save_config(config_store.load_config())

        stats = config_store.get_stats()

        assert stats["generation"] == 1
        assert stats["transaction_history_count"] == 1
        assert len(config_store.get_transaction_history()) == 1


class TestTransactions:
    def test_commit(self, config_store, base_config):
        with config_store.config_transaction() as transaction:
            config = transaction.load()
            config["dark_mode"] = True
            assert transaction.save(config) is True

        assert base_config.data["dark_mode"] is True

    def test_rollback_after_save(self, config_store, base_config):
        with pytest.raises(RuntimeError):
            with config_store.config_transaction() as transaction:
                config = transaction.load()
                config["dark_mode"] = True
                transaction.save(config)
                raise RuntimeError("abort")

        assert base_config.data["dark_mode"] is False
        assert config_store.load_config()["dark_mode"] is False

    def test_no_rollback_write_without_save(self, config_store, base_config):
        with pytest.raises(ValueError):
            with config_store.config_transaction() as transaction:
                transaction.load()
                raise ValueError("abort")

        assert base_config.saves == 0

    def test_set_config_value(self, config_store, base_config):
        assert config_store.set_config_value("use_celsius", True) is True
        assert config_store.get_config_value("use_celsius") is True
        assert config_store.get_config_value("missing", "fallback") == "fallback"

    def test_concurrent_transactions_do_not_lose_updates(self, config_store, base_config):
        def increment():
            with config_store.config_transaction() as transaction:
                config = transaction.load()
                config["counter"] = config.get("counter", 0) + 1
                transaction.save(config)

        threads = [threading.Thread(target=increment) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert base_config.data["counter"] == 20


class TestReadWriteLock:
    def test_readers_share_access(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=2)

        def reader():
            with lock.read_lock():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert not any(thread.is_alive() for thread in threads)

    def test_writer_waits_for_readers(self):
        lock = ReadWriteLock()
        order = []
        reading = threading.Event()
        release = threading.Event()

        def reader():
            with lock.read_lock():
                reading.set()
                release.wait(timeout=2)
                order.append("read")

        def writer():
            reading.wait(timeout=2)
            with lock.write_lock():
                order.append("write")

        threads = [threading.Thread(target=reader), threading.Thread(target=writer)]
        for thread in threads:
            thread.start()
        reading.wait(timeout=2)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert order == ["read", "write"]
