"""Tests for positional binding and disposal."""

import pytest

from sqlbind.core.binder import BoundParameterList, ParameterBinder, bind, bound_parameters, cleanup_values, dispose
from sqlbind.core.config import ParameterConfig
from sqlbind.core.types import ParameterDescriptor, SqlType, TypedValue
from sqlbind.exceptions import ArityMismatchError, DriverBindingError
from tests.conftest import Disposable, RecordingHandle

INT = ParameterDescriptor(sql_type=SqlType.INTEGER)
TEXT = ParameterDescriptor(sql_type=SqlType.VARCHAR)
TAGS = ParameterDescriptor(sql_type=SqlType.ARRAY, type_name="text[]")


def test_bind_scalars_in_order(handle: RecordingHandle) -> None:
    """Test each value binds to the next 1-based slot with its declared descriptor."""
    bound = bind("INSERT INTO t VALUES (?, ?)", [INT, TEXT], [1, "one"], handle)

    assert handle.calls == [(1, INT, 1), (2, TEXT, "one")]
    assert bound.values == [1, "one"]
    assert len(bound) == 2


def test_bind_fewer_values_than_declared(handle: RecordingHandle) -> None:
    """Test partial binding leaves the remaining slots untouched."""
    bind("INSERT INTO t VALUES (?, ?)", [INT, TEXT], [1], handle)

    assert handle.calls == [(1, INT, 1)]


def test_bind_more_values_than_declared(handle: RecordingHandle) -> None:
    """Test extra values are an arity error and nothing is bound."""
    with pytest.raises(ArityMismatchError, match="Given 3 parameters but expected 2") as exc_info:
        bind("INSERT INTO t VALUES (?, ?)", [INT, TEXT], [1, "one", 2], handle)

    assert exc_info.value.expected == 2
    assert exc_info.value.given == 3
    assert handle.calls == []


def test_bind_expands_collections(handle: RecordingHandle) -> None:
    """Test collection values occupy consecutive slots."""
    bind("SELECT * FROM t WHERE a = ? AND id IN (?, ?, ?)", [TEXT, INT], ["x", [1, 2, 3]], handle)

    assert handle.calls == [(1, TEXT, "x"), (2, INT, 1), (3, INT, 2), (4, INT, 3)]


def test_bind_flattens_tuples(handle: RecordingHandle) -> None:
    """Test tuple elements bind one slot per member."""
    bind("WHERE (a, b) IN ((?, ?), (?, ?))", [INT], [[(1, 2), (3, 4)]], handle)

    assert handle.values == [1, 2, 3, 4]


def test_bind_array_type_keeps_collection(handle: RecordingHandle) -> None:
    """Test the array type binds a collection as one value."""
    bind("SELECT * FROM t WHERE tags = ?", [TAGS], [["a", "b"]], handle)

    assert handle.calls == [(1, TAGS, ["a", "b"])]


def test_typed_value_overrides_declared(handle: RecordingHandle) -> None:
    """Test a value's own descriptor governs its slot."""
    typed = TypedValue.of("2024-01-01", SqlType.DATE)

    bind("SELECT ?, ?", [TEXT, TEXT], [typed, "plain"], handle)

    assert handle.calls == [(1, typed.descriptor, "2024-01-01"), (2, TEXT, "plain")]


def test_typed_array_value_overrides_expansion(handle: RecordingHandle) -> None:
    """Test an array-typed value is not expanded even when declared as a scalar type."""
    typed = TypedValue.of([1, 2], SqlType.ARRAY)

    bind("SELECT ?", [INT], [typed], handle)

    assert handle.calls == [(1, typed.descriptor, [1, 2])]


def test_empty_collection_binds_none(handle: RecordingHandle) -> None:
    """Test an empty collection binds ``None`` into its single placeholder."""
    bind("IN (?)", [INT], [[]], handle)

    assert handle.calls == [(1, INT, None)]


def test_empty_collection_with_null_policy(handle: RecordingHandle) -> None:
    """Test the ``null`` policy binds nothing for an empty collection."""
    bind("IN (NULL)", [INT], [[]], handle, ParameterConfig(empty_collection="null"))

    assert handle.calls == []


def test_prepare_without_handle() -> None:
    """Test binding without a handle only builds the list."""
    bound = bind("SELECT ?, ?", [INT, INT], [1, [2, 3]])

    assert isinstance(bound, BoundParameterList)
    assert bound.values == [1, 2, 3]
    assert bound.descriptors == [INT, INT, INT]
    assert bound[1] == (2, INT)
    assert list(bound) == [(1, INT), (2, INT), (3, INT)]


def test_driver_failure_is_wrapped_and_values_disposed() -> None:
    """Test a rejected value raises with its slot and releases resources."""
    lob = Disposable()
    handle = RecordingHandle(fail_at=2, error=TypeError("cannot adapt"))

    with pytest.raises(DriverBindingError, match="parameter #2") as exc_info:
        bind("SELECT ?, ?", [INT, TEXT], [lob, "x"], handle)

    assert exc_info.value.index == 2
    assert exc_info.value.descriptor == TEXT
    assert isinstance(exc_info.value.__cause__, TypeError)
    assert lob.cleanups == 1


def test_dispose_is_idempotent() -> None:
    """Test disposing twice releases each value once."""
    lob = Disposable()
    bound = bind("SELECT ?", [INT], [lob])

    dispose(bound)
    dispose(bound)

    assert bound.disposed
    assert lob.cleanups == 1


def test_dispose_none_is_ignored() -> None:
    """Test disposing nothing is a no-op."""
    dispose(None)


def test_dispose_reaches_wrapped_and_nested_values() -> None:
    """Test typed wrappers and collection elements are released too."""
    wrapped = Disposable("wrapped")
    nested = Disposable("nested")
    bound = bind("SELECT ?, ?, ?", [INT, INT], [TypedValue.of(wrapped, SqlType.BLOB), [nested, 1]])

    bound.dispose()

    assert wrapped.cleanups == 1
    assert nested.cleanups == 1


def test_cleanup_continues_after_failure() -> None:
    """Test every value is released and the first failure is raised."""
    first = Disposable("first", fail=True)
    second = Disposable("second", fail=True)
    third = Disposable("third")

    with pytest.raises(RuntimeError, match="cannot release first"):
        cleanup_values([first, second, third])

    assert (first.cleanups, second.cleanups, third.cleanups) == (1, 1, 1)


def test_bound_parameters_context_disposes(handle: RecordingHandle) -> None:
    """Test the context manager disposes on exit, also after errors."""
    lob = Disposable()

    with bound_parameters("SELECT ?", [INT], [lob], handle) as bound:
        assert handle.values == [lob]
        assert not bound.disposed
    assert lob.cleanups == 1

    other = Disposable()
    with pytest.raises(KeyError), bound_parameters("SELECT ?", [INT], [other], handle):
        raise KeyError("boom")
    assert other.cleanups == 1


class TestParameterBinderArity:
    """Test arity checks when the parameters in use differ from the declaration."""

    def test_expanded_named_parameters_pass(self) -> None:
        """Test repeated names count once against the declaration."""
        declared = [ParameterDescriptor(name="a"), ParameterDescriptor(name="b")]
        used = [ParameterDescriptor(name="a"), ParameterDescriptor(name="b"), ParameterDescriptor(name="a")]

        ParameterBinder("SELECT ?, ?, ?", declared, used).check_arity([1, 2, 1])

    def test_distinct_name_mismatch(self) -> None:
        """Test a different number of distinct names is rejected."""
        declared = [ParameterDescriptor(name="a"), ParameterDescriptor(name="b")]
        used = [ParameterDescriptor(name="a"), ParameterDescriptor(name="a"), ParameterDescriptor(name="a")]
        binder = ParameterBinder("SELECT ?, ?, ?", declared, used)

        with pytest.raises(ArityMismatchError, match="Given 1 parameters but expected 2"):
            binder.check_arity([1, 1, 1])

    def test_unnamed_parameters_count_individually(self) -> None:
        """Test unnamed parameters each count as a distinct parameter."""
        binder = ParameterBinder("SELECT ?, ?", [INT], [INT, INT])

        with pytest.raises(ArityMismatchError):
            binder.check_arity([1, 2])

    def test_bind_uses_parameters_in_use(self, handle: RecordingHandle) -> None:
        """Test binding walks the parameters in use rather than the declaration."""
        declared = [ParameterDescriptor(name="a")]
        used = [ParameterDescriptor(name="a", sql_type=SqlType.INTEGER)] * 2
        binder = ParameterBinder("SELECT ?, ?", declared, used)

        binder.bind([1, 1], handle)

        assert handle.calls == [(1, used[0], 1), (2, used[1], 1)]

    def test_occurrence_names_count_names_without_slots(self) -> None:
        """Test a name that binds no slot still counts toward the declaration."""
        declared = [ParameterDescriptor(name="a"), ParameterDescriptor(name="ids")]
        binder = ParameterBinder(
            "SELECT ? WHERE id IN (NULL)", declared, [ParameterDescriptor(name="a")], occurrence_names=("a", "ids")
        )

        binder.check_arity([1])

        with pytest.raises(ArityMismatchError):
            ParameterBinder("SELECT ? WHERE id IN (NULL)", declared, [ParameterDescriptor(name="a")]).check_arity([1])


class TestParameterBinderExpansion:
    """Test the expansion switch of the binder."""

    def test_expanded_values_bind_one_slot_each(self, handle: RecordingHandle) -> None:
        """Test already expanded values are not expanded again."""
        ids = ParameterDescriptor(name="ids")
        binder = ParameterBinder("SELECT ?, ?", [ids], [ids, ids], expand=False)

        bound = binder.bind([[1, 2], [3]], handle)

        assert handle.calls == [(1, ids, [1, 2]), (2, ids, [3])]
        assert len(bound) == 2

    def test_expansion_on_by_default(self, handle: RecordingHandle) -> None:
        ids = ParameterDescriptor(name="ids")

        ParameterBinder("SELECT ?, ?, ?", [ids]).bind([[1, 2, 3]], handle)

        assert handle.values == [1, 2, 3]
