"""
Encoder policy tests shared by every dialect.

Validates number formatting, the NaN/Infinity policy, sparse integer-keyed
mappings, depth limits and the persistent encode buffer.
"""

import math
import threading

import pytest

import kvformat
from kvformat import InvalidNumbers


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, "0"),
        (2, "2"),
        (-7, "-7"),
        (0.1, "0.1"),
        (1 / 3, "0.33333333333333"),
        (1e20, "1e+20"),
        (2.5e-8, "2.5e-08"),
    ],
)
def test_number_formatting(value: float, expected: str) -> None:
    """
    Validates the default fourteen significant digits.
    """
    assert kvformat.dumps({"n": value}) == f"n={expected}\n"


def test_number_precision_option() -> None:
    assert kvformat.dumps({"n": 1 / 3}, number_precision=3) == "n=0.333\n"


def test_integer_overflow_rejected() -> None:
    with pytest.raises(kvformat.KVEncodeError, match="out of range"):
        kvformat.dumps({"n": 10**400})


def test_booleans_are_not_numbers() -> None:
    """
    Validates bools are written as literals and refused as keys.
    """
    assert kvformat.dumps({"t": True, "f": False}) == "t=true\nf=false\n"

    with pytest.raises(kvformat.EncodeTypeError, match="table key"):
        kvformat.dumps({True: "x"})


def test_non_finite_rejected_by_default() -> None:
    for value in (math.nan, math.inf, -math.inf):
        with pytest.raises(
            kvformat.KVEncodeError, match="must not be NaN or Infinity"
        ):
            kvformat.dumps({"n": value})


def test_non_finite_literal_round_trip() -> None:
    """
    Validates literal NaN/Infinity text reads back with passthrough on.
    """
    value = {"a": math.nan, "b": math.inf, "c": -math.inf}
    text = kvformat.dumps(value, invalid_numbers=InvalidNumbers.LITERAL)
    assert text == "a=NaN\nb=Infinity\nc=-Infinity\n"

    result = kvformat.loads(text, invalid_numbers=True)
    assert math.isnan(result["a"])
    assert result["b"] == math.inf
    assert result["c"] == -math.inf

    text = kvformat.dumps(
        {"root": value}, "map", invalid_numbers=InvalidNumbers.LITERAL
    )
    result = kvformat.loads(text, "map", invalid_numbers=True)["root"]
    assert math.isnan(result["a"])
    assert result["c"] == -math.inf

    with pytest.raises(kvformat.TokenError):
        kvformat.loads(text, "map")


def test_non_finite_null() -> None:
    text = kvformat.dumps({"n": math.nan}, invalid_numbers=InvalidNumbers.NULL)
    assert text == "n=null\n"


def test_dense_integer_keys_become_array() -> None:
    """
    Validates positive integer keys write as an array; gaps become null.
    """
    dense = {"a": {1: "x", 2: "y", 3: "z", 4: "w"}}
    assert (
        kvformat.dumps(dense)
        == 'a=[\n\t"x",\n\t"y",\n\t"z",\n\t"w",\n]\n'
    )

    gap = {"a": {3: "z", 1: "x"}}
    assert kvformat.dumps(gap) == 'a=[\n\t"x",\n\tnull,\n\t"z",\n]\n'


def test_non_positive_keys_stay_objects() -> None:
    text = kvformat.dumps({"a": {0: "x", 1: "y"}})
    assert text == 'a={\n\t0="x"\n\t1="y"\n}\n'
    assert kvformat.dumps({"a": {}}) == "a={\n}\n"


def test_sparse_mapping_rejected_or_converted() -> None:
    """
    Validates the ratio and safe-size thresholds.
    """
    sparse = {"a": {1: "x", 2: "y", 3: "z", 100: "w"}}
    with pytest.raises(kvformat.SparseArrayError, match="excessively sparse"):
        kvformat.dumps(sparse)

    assert kvformat.dumps(sparse, sparse_convert=True) == (
        'a={\n\t1="x"\n\t2="y"\n\t3="z"\n\t100="w"\n}\n'
    )

    # Below sparse_safe the ratio is not enforced
    assert kvformat.dumps({"a": {1: "x", 10: "y"}}).count("null") == 8
    with pytest.raises(kvformat.SparseArrayError):
        kvformat.dumps({"a": {1: "x", 11: "y"}})

    # A ratio of zero disables the check
    text = kvformat.dumps({"a": {1: "x", 100: "y"}}, sparse_ratio=0)
    assert text.count("null") == 98


def test_encode_depth_limit() -> None:
    """
    Validates containers may nest exactly max_depth levels.
    """
    assert kvformat.dumps({"a": {"b": {}}}, max_depth=2)

    with pytest.raises(
        kvformat.DepthExceededError, match=r"excessive nesting \(3\)"
    ):
        kvformat.dumps({"a": {"b": {"c": {}}}}, max_depth=2)


def test_self_reference_hits_depth_limit() -> None:
    value: dict[str, object] = {}
    value["self"] = value
    with pytest.raises(kvformat.DepthExceededError):
        kvformat.dumps(value)


def test_deep_nesting_without_recursion() -> None:
    """
    Validates nesting far past the recursion limit encodes and decodes.
    """
    depth = 5000
    value: dict[str, object] = {}
    for _ in range(depth):
        value = {"k": value}

    text = kvformat.dumps(
        {"root": value}, "map", newlines=False, max_depth=depth + 1
    )
    result = kvformat.loads(text, "map", max_depth=depth + 1)["root"]

    levels = 0
    while result:
        result = result["k"]
        levels += 1
    assert levels == depth


def test_persistent_buffer_reused() -> None:
    """
    Validates a kept buffer is reset between encodes and after errors.
    """
    codec = kvformat.Codec("brace")
    assert codec.keep_buffer
    assert codec.encode({"a": 1}) == b"a=1\n"
    assert codec.encode({"b": 2}) == b"b=2\n"

    with pytest.raises(kvformat.EncodeTypeError):
        codec.encode({"a": 1, "b": object()})
    assert codec._buffer is not None
    assert len(codec._buffer) == 0
    assert codec.encode({"c": 3}) == b"c=3\n"


def test_buffer_toggled_by_configure() -> None:
    codec = kvformat.Codec("brace")
    codec.configure(encode_keep_buffer=False)
    assert not codec.keep_buffer
    assert codec.encode({"a": 1}) == b"a=1\n"

    codec.configure(encode_keep_buffer=True)
    assert codec.keep_buffer
    assert codec.encode({"a": 1}) == b"a=1\n"


def test_configure_during_encode_fails() -> None:
    """
    Validates reconfiguring while the buffer is in use raises.
    """
    codec = kvformat.Codec("brace")
    codec._lock.acquire()
    try:
        with pytest.raises(RuntimeError, match="while an encode is running"):
            codec.configure(encode_keep_buffer=False)
    finally:
        codec._lock.release()
    assert codec.keep_buffer


class ReconfiguringLock:
    """Lock that lets another thread drop the buffer just before entry."""

    def __init__(self, codec: kvformat.Codec) -> None:
        self.codec = codec
        self.inner = threading.Lock()
        self.armed = True

    def acquire(self, blocking: bool = True) -> bool:
        return self.inner.acquire(blocking)

    def release(self) -> None:
        self.inner.release()

    def __enter__(self) -> "ReconfiguringLock":
        if self.armed:
            self.armed = False
            worker = threading.Thread(
                target=self.codec.configure,
                kwargs={"encode_keep_buffer": False},
            )
            worker.start()
            worker.join()
        self.inner.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.inner.release()


def test_buffer_released_before_lock_taken() -> None:
    """
    Validates an encode still succeeds when the buffer is released between
    the buffer check and taking the lock.
    """
    codec = kvformat.Codec("brace")
    codec._lock = ReconfiguringLock(codec)  # type: ignore[assignment]
    assert codec.encode({"a": 1}) == b"a=1\n"
    assert not codec.keep_buffer
    assert codec.encode({"b": 2}) == b"b=2\n"


def test_strings_escaped() -> None:
    """
    Validates control characters, quotes and backslashes are escaped and
    other characters are written as UTF-8.
    """
    value = {"s": 'tab\t "q" \\ \x01 \x7f é'}
    assert (
        kvformat.dumps(value)
        == 's="tab\\t \\"q\\" \\\\ \\u0001 \\u007f é"\n'
    )


def test_lone_surrogate_rejected() -> None:
    with pytest.raises(kvformat.KVEncodeError, match="Cannot serialise string"):
        kvformat.dumps({"s": "\ud800"})
