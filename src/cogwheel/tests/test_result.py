"""Tests for the Result type used for expected queue failures.

Validates:
- Functor laws
- Monad laws
- Accessors and combinators
- Equality, hashing, iteration
"""

from __future__ import annotations

from typing import Callable

import pytest

from cogwheel.foundation.errors import Err, Ok, Result, SendError


# ═════════════════════════════════════════════════════════════════════════════
# Property Tests - Functor / Monad Laws
# ═════════════════════════════════════════════════════════════════════════════


def test_functor_identity() -> None:
    """Functor law: fmap id = id"""
    result: Result[int, str] = Ok(42)
    assert result.map(lambda x: x) == result

    err_result: Result[int, str] = Err("fail")
    assert err_result.map(lambda x: x) == err_result


def test_functor_composition() -> None:
    """Functor law: fmap (f . g) = fmap f . fmap g"""
    f: Callable[[int], int] = lambda x: x + 1
    g: Callable[[int], int] = lambda x: x * 2
    result: Result[int, str] = Ok(5)

    assert result.map(lambda x: f(g(x))) == result.map(g).map(f)


def test_monad_left_identity() -> None:
    """Monad law: return a >>= f = f a"""
    f: Callable[[int], Result[int, str]] = lambda x: Ok(x * 2)
    assert Ok(42).flat_map(f) == f(42)


def test_monad_right_identity() -> None:
    """Monad law: m >>= return = m"""
    m: Result[int, str] = Ok(42)
    assert m.flat_map(lambda x: Ok(x)) == m


def test_monad_associativity() -> None:
    """Monad law: (m >>= f) >>= g = m >>= (\\x -> f x >>= g)"""
    m: Result[int, str] = Ok(5)
    f: Callable[[int], Result[int, str]] = lambda x: Ok(x + 1)
    g: Callable[[int], Result[int, str]] = lambda x: Ok(x * 2)

    assert m.flat_map(f).flat_map(g) == m.flat_map(lambda x: f(x).flat_map(g))


# ═════════════════════════════════════════════════════════════════════════════
# Operational Tests
# ═════════════════════════════════════════════════════════════════════════════


def test_ok_construction() -> None:
    """Test Ok variant construction and accessors."""
    result: Result[int, str] = Ok(42)

    assert result.is_ok()
    assert not result.is_err()
    assert result.unwrap() == 42
    assert result.ok() == 42
    assert result.err() is None


def test_err_construction() -> None:
    """Test Err variant construction and accessors."""
    result: Result[int, str] = Err("failed")

    assert result.is_err()
    assert result.unwrap_err() == "failed"
    assert result.ok() is None
    assert result.err() == "failed"


def test_unwrap_wrong_variant_raises() -> None:
    with pytest.raises(RuntimeError, match="unwrap\\(\\) on Err"):
        Err("boom").unwrap()
    with pytest.raises(RuntimeError, match="unwrap_err\\(\\) on Ok"):
        Ok(1).unwrap_err()


def test_unwrap_or() -> None:
    assert Ok(3).unwrap_or(0) == 3
    assert Err("x").unwrap_or(0) == 0


def test_map_skips_err() -> None:
    """map on Err should not apply the function."""
    mapped = Err("fail").map(lambda x: x * 2)
    assert mapped.unwrap_err() == "fail"


def test_map_err_on_err() -> None:
    mapped = Err("fail").map_err(lambda e: f"Error: {e}")
    assert mapped.unwrap_err() == "Error: fail"


def test_map_err_skips_ok() -> None:
    assert Ok(1).map_err(lambda e: f"Error: {e}") == Ok(1)


def test_flat_map_short_circuits() -> None:
    calls: list[int] = []

    def step(x: int) -> Result[int, str]:
        calls.append(x)
        return Ok(x)

    assert Err("stop").flat_map(step) == Err("stop")
    assert calls == []


def test_match_dispatches() -> None:
    assert Ok(2).match(ok=lambda v: v * 10, err=lambda e: -1) == 20
    assert Err("e").match(ok=lambda v: v * 10, err=lambda e: -1) == -1


def test_pattern_matching() -> None:
    match Ok("payload"):
        case Ok(value):
            assert value == "payload"
        case Err():
            pytest.fail("expected Ok")


def test_destructure_send_error() -> None:
    match Err(SendError("job")):
        case Err(SendError(item)):
            assert item == "job"
        case _:
            pytest.fail("expected Err(SendError)")


def test_variants_share_base() -> None:
    assert isinstance(Ok(1), Result)
    assert isinstance(Err(1), Result)


# ═════════════════════════════════════════════════════════════════════════════
# Dunder Methods
# ═════════════════════════════════════════════════════════════════════════════


def test_equality_distinguishes_variants() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    assert Ok(1) != 1


def test_hashable() -> None:
    assert len({Ok(1), Ok(1), Err(1)}) == 2


def test_bool_and_iter() -> None:
    assert Ok(0)
    assert not Err("x")
    assert list(Ok(5)) == [5]
    assert list(Err("x")) == []


def test_repr() -> None:
    assert repr(Ok(None)) == "Ok(None)"
    assert repr(Err("closed")) == "Err('closed')"


def test_send_error_carries_item() -> None:
    """A rejected send hands the payload back through Err."""
    result: Result[None, SendError[str]] = Err(SendError("job"))

    assert result.unwrap_err().item == "job"
    assert str(result.unwrap_err()) == "sending on a closed channel"
