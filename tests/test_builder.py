"""Tests for script composition."""

import asyncio

import pytest

from scriptag import Builder, Raw, node, python, sh
from scriptag.exceptions import DisallowedError


def content(builder, params=None):
    return asyncio.run(builder.content(params))


async def collect(items):
    return [item async for item in items]


class Writer:
    def __init__(self):
        self.data = b""
        self.closed = False

    def write(self, chunk):
        self.data += chunk

    def close(self):
        self.closed = True


# =============================================================================
# Composition
# =============================================================================


def test_body_interleaves_fragments_and_values():
    builder = Builder(["a ", " b ", ""], [1, "x"], name="test")
    assert content(builder) == 'a 1 b "x"'


def test_fragment_count_must_match_values():
    with pytest.raises(ValueError, match="expected 2 fragments"):
        Builder(["a", "b", "c"], [1], name="test")


def test_declarations_precede_body():
    builder = Builder(["body"], [], name="test")
    builder.param("x")
    builder.param("y")
    assert content(builder, {"x": 1, "y": "z"}) == '[x = 1, y = "z"]body'


def test_no_declarations_without_values():
    builder = Builder(["body"], [], name="test")
    builder.param("x")
    assert content(builder) == "body"
    assert content(builder, {"other": 1}) == "body"


def test_params_from_options():
    builder = Builder(["body"], [], name="test", params=[("limit", "LIMIT", 10), ("q",)])
    assert content(builder) == "[LIMIT = 10]body"
    assert content(builder, {"q": "a", "limit": 1}) == '[LIMIT = 1, q = "a"]body'


def test_body_values_keep_builder_state_intact():
    builder = python("print({})", [1, {"a": None}])
    assert content(builder) == content(builder) == 'print([1, {"a": None}])'


# =============================================================================
# Built-in languages
# =============================================================================


def test_python_literals():
    builder = python("print({}, {}, {}, {})", True, None, float("nan"), 2**70)
    assert content(builder) == f"print(True, None, float('nan'), {2**70})"


def test_python_declarations():
    builder = python("print(x, y)\n")
    builder.param("x")
    builder.param("y")
    assert content(builder, {"x": 3, "y": [1.5, "a"]}) == 'x = 3\ny = [1.5, "a"]\nprint(x, y)\n'


def test_node_big_ints():
    builder = node("console.log(x, y)")
    builder.param("x")
    builder.param("y")
    assert content(builder, {"x": 2**60, "y": 5}) == (
        f"var x = {2**60}n,\n    y = 5;\nconsole.log(x, y)"
    )


def test_sh_quoting():
    builder = sh('echo {} "$x"', ["a", "b c"])
    builder.param("x")
    assert content(builder, {"x": "it's"}) == "x='it'\"'\"'s'\necho a 'b c' \"$x\""


def test_sh_rejects_arrays():
    builder = sh("echo $x")
    builder.param("x")
    with pytest.raises(DisallowedError, match=r"\[iterable\] not allowed in \[declare\] for sh"):
        content(builder, {"x": [1]})
    with pytest.raises(DisallowedError, match=r"in \[iterable\]"):
        content(sh("echo {}", [[1]]))


def test_raw_values():
    assert content(sh("echo {}", Raw("$HOME"))) == "echo $HOME"


def test_record_keys_are_escaped():
    """Keys get the same escaping as string values."""
    assert content(python("{}", {"a\nb": "a\nb"})) == '{"a\\nb": "a\\nb"}'
    assert content(node("{}", {'"\t': 1})) == '{"\\"\\t": 1}'


def test_args_param_is_registered():
    builder = python("import sys\n")
    assert content(builder, {"argv": ["-v"]}) == 'argv = ["-v"]\nimport sys\n'


# =============================================================================
# Output
# =============================================================================


def test_chunks_respect_max_size():
    builder = python("print({})", "x" * 10)
    chunks = asyncio.run(collect(builder.chunks(max_size=3)))
    assert all(len(chunk) <= 3 for chunk in chunks)
    assert "".join(chunks) == content(builder)


def test_stream_yields_bytes():
    builder = python("print({})", "é")
    data = asyncio.run(collect(builder.stream(max_size=2)))
    assert all(isinstance(chunk, bytes) and chunk for chunk in data)
    assert b"".join(data) == 'print("é")'.encode()


def test_stream_respects_byte_size():
    """Multi-byte text is cut between characters, never past max_size bytes."""
    builder = python("print({})", "é" * 10)
    data = asyncio.run(collect(builder.stream(max_size=4)))
    assert all(0 < len(chunk) <= 4 for chunk in data)
    assert b"".join(data).decode() == content(builder)

    chunks = asyncio.run(collect(builder.chunks(max_size=3)))
    assert all(len(chunk.encode()) <= 3 for chunk in chunks)
    assert "".join(chunks) == content(builder)


def test_wide_character_is_not_split():
    builder = python("{}", Raw("€€"))
    assert asyncio.run(collect(builder.chunks(max_size=2))) == ["", "€", "€", ""]


def test_pipe():
    builder = sh("echo $x")
    builder.param("x")
    writer = Writer()
    asyncio.run(builder.pipe(writer, params={"x": 1}, chunk_size=4))
    assert writer.data == b"x=1\necho $x"
    assert not writer.closed

    asyncio.run(builder.pipe(writer, close=True))
    assert writer.closed


def test_content_is_lazy():
    """Values are only pulled when the output is read."""
    pulled = []

    def produce():
        pulled.append(True)
        return "v"

    builder = sh("echo {}", Raw(produce))
    assert pulled == []
    assert content(builder) == "echo v"
    assert pulled == [True]
