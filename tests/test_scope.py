"""Tests for registry_scope(), @isolated and the ambient default registry."""

import logging

import pytest

from eachop import (
    EXHAUSTED,
    Registry,
    each_key,
    get_active_count,
    get_registry,
    isolated,
    registry_scope,
    set_default_registry,
)


def step_key(container):
    return each_key(container)


class TestRegistryScope:
    def test_installs_fresh_registry(self):
        outer = get_registry()
        with registry_scope() as registry:
            assert get_registry() is registry
            assert registry is not outer
        assert get_registry() is outer

    def test_disposes_abandoned_cursors(self):
        d = {"a": 1, "b": 2}
        with registry_scope() as registry:
            assert step_key(d) == "a"
            assert len(registry) == 1
        assert len(registry) == 0

    def test_outer_cursor_unaffected(self):
        d = {"a": 1, "b": 2, "c": 3}
        with registry_scope():
            assert step_key(d) == "a"
            with registry_scope():
                assert step_key(d) == "a"
            assert step_key(d) == "b"

    def test_given_registry_is_not_disposed(self):
        d = {"a": 1, "b": 2}
        registry = Registry()
        with registry_scope(registry) as installed:
            assert installed is registry
            step_key(d)
        assert len(registry) == 1
        with registry_scope(registry):
            assert step_key(d) == "b"

    def test_disposes_on_exception(self):
        d = {"a": 1, "b": 2}
        captured = []
        try:
            with registry_scope() as registry:
                captured.append(registry)
                step_key(d)
                raise ValueError("boom")
        except ValueError:
            pass
        assert len(captured[0]) == 0

    def test_logs_abandoned_on_exit(self, caplog):
        with caplog.at_level(logging.INFO, logger="eachop.registry"):
            with registry_scope():
                step_key({"a": 1, "b": 2})
        assert "Disposed registry with 1 unfinished iterations" in caplog.text


class TestIsolated:
    def test_each_call_starts_fresh(self):
        d = {"a": 1, "b": 2, "c": 3}

        @isolated
        def first_key(container):
            while (key := each_key(container)) is not EXHAUSTED:
                return key

        assert first_key(d) == "a"
        assert first_key(d) == "a"

    def test_generator_starts_fresh(self):
        d = {"a": 1, "b": 2, "c": 3}

        @isolated
        def first_keys(container):
            yield each_key(container)

        with registry_scope():
            assert list(first_keys(d)) == ["a"]
            assert list(first_keys(d)) == ["a"]
            assert get_active_count() == 0

    def test_generator_scope_stays_inside_the_body(self):
        d = {"a": 1, "b": 2}
        seen = []

        @isolated
        def walk(container):
            seen.append(get_registry())
            while (key := each_key(container)) is not EXHAUSTED:
                yield key
                seen.append(get_registry())

        outer = get_registry()
        gen = walk(d)
        assert next(gen) == "a"
        # suspended: the consumer still sees its own registry
        assert get_registry() is outer
        assert list(gen) == ["b"]
        assert len(seen) == 3
        assert seen[0] is seen[1] is seen[2]
        assert seen[0] is not outer
        assert len(seen[0]) == 0

    def test_generator_close_disposes(self):
        d = {"a": 1, "b": 2}
        captured = []

        @isolated
        def walk(container):
            captured.append(get_registry())
            while (key := each_key(container)) is not EXHAUSTED:
                yield key

        gen = walk(d)
        assert next(gen) == "a"
        assert len(captured[0]) == 1
        gen.close()
        assert len(captured[0]) == 0

    def test_generator_send_throw_and_return_value(self):
        @isolated
        def echo():
            received = []
            try:
                while True:
                    received.append((yield len(received)))
            except KeyError:
                return received

        gen = echo()
        assert next(gen) == 0
        assert gen.send("x") == 1
        with pytest.raises(StopIteration) as stop:
            gen.throw(KeyError("done"))
        assert stop.value.value == ["x"]

    def test_preserves_metadata(self):
        @isolated
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_passes_through_return_and_args(self):
        @isolated
        def add(x, y=0):
            return x + y

        assert add(1, y=2) == 3


class TestDefaultRegistry:
    def test_set_default_registry(self):
        replacement = Registry()
        previous = set_default_registry(replacement)
        try:
            assert get_registry() is replacement
            step_key({"a": 1, "b": 2})
            assert get_active_count() == 1
        finally:
            set_default_registry(previous)
        assert get_registry() is previous

    def test_scope_wins_over_default(self):
        with registry_scope() as registry:
            assert get_registry() is registry
            assert get_active_count() == 0
