import pytest
from quill.quill_commands import CommandRegistry
from quill.quill_context import Context
from quill.quill_datatypes import UnknownVariable
from quill.quill_stdlib import StdLib


@pytest.fixture
def registry():
    """A registry holding the standard commands."""
    registry = CommandRegistry()
    registry.bind(StdLib())
    return registry


# --- Primitive reads ---

def test_seek_does_not_advance():
    ctx = Context("ab")
    assert ctx.seek_character() == "a"
    assert ctx.index == 0


def test_seek_past_end_is_none():
    ctx = Context("a", index=1)
    assert ctx.seek_character() is None


def test_read_token_success_and_failure():
    ctx = Context("for x")
    assert ctx.seek_token("for")
    assert not ctx.read_token("fox")
    assert ctx.index == 0
    assert ctx.read_token("for")
    assert ctx.index == 3


def test_consume_whitespace_only_skips_spaces():
    ctx = Context("   \tx")
    ctx.consume_whitespace()
    assert ctx.index == 3


def test_read_character_overshoots_at_end():
    ctx = Context("")
    assert ctx.read_character() is None
    assert ctx.index == 1


# --- Integers ---

@pytest.mark.asyncio
async def test_read_int_simple():
    ctx = Context("123")
    assert await ctx.read_int() == 123
    assert ctx.index == 3


@pytest.mark.asyncio
async def test_read_int_negative_consumes_line_end():
    ctx = Context("-5;")
    assert await ctx.read_int() == -5
    assert ctx.index == 3


@pytest.mark.asyncio
async def test_read_int_bare_minus_is_absent():
    ctx = Context("-")
    assert await ctx.read_int() is None
    assert ctx.index == 0


@pytest.mark.asyncio
async def test_read_int_stops_before_non_digit():
    ctx = Context("12abc")
    assert await ctx.read_int() == 12
    assert ctx.index == 2


@pytest.mark.asyncio
async def test_read_int_consumes_following_whitespace():
    ctx = Context("12   34")
    assert await ctx.read_int() == 12
    assert ctx.index == 5
    assert await ctx.read_int() == 34
    assert ctx.index == 7


@pytest.mark.asyncio
async def test_read_int_without_whitespace_consumption():
    ctx = Context("12 x")
    assert await ctx.read_int(consume_whitespace=False) == 12
    assert ctx.index == 2


@pytest.mark.asyncio
async def test_read_int_line_end_disabled_leaves_semicolon():
    ctx = Context("5;")
    assert await ctx.read_int(end_on_line_end=False) == 5
    assert ctx.index == 1


@pytest.mark.asyncio
async def test_read_int_no_digits():
    ctx = Context("abc")
    assert await ctx.read_int() is None
    assert ctx.index == 0


@pytest.mark.asyncio
async def test_read_int_through_variable():
    ctx = Context("$x", variables={"x": 5})
    assert await ctx.read_int() == 5


@pytest.mark.asyncio
async def test_read_int_multi_digit_unit_is_one_digit_place():
    assert await Context("1$n", variables={"n": 12}).read_int() == 22
    assert await Context("$n", variables={"n": 12}).read_int() == 12


@pytest.mark.asyncio
async def test_read_int_through_substitution(registry):
    ctx = Context("${return 5}", registry)
    assert await ctx.read_int() == 5
    assert ctx.index == len("${return 5}")


# --- Floats ---

@pytest.mark.asyncio
async def test_read_float():
    ctx = Context("3.14")
    assert await ctx.read_float() == 3.14
    assert ctx.index == 4


@pytest.mark.asyncio
async def test_read_float_trailing_zero():
    assert await Context("3.140").read_float() == 3.14


@pytest.mark.asyncio
async def test_read_float_dot_without_digits_is_not_consumed():
    ctx = Context("3.x")
    value = await ctx.read_float()
    assert value == 3
    assert isinstance(value, int)
    assert ctx.index == 1


@pytest.mark.asyncio
async def test_read_float_sign_applies_to_whole_number():
    assert await Context("-2.5").read_float() == -2.5
    assert await Context("-0.5").read_float() == -0.5


@pytest.mark.asyncio
async def test_read_float_missing_integer_part():
    assert await Context(".5").read_float() == 0.5


@pytest.mark.asyncio
async def test_read_float_integer_only():
    ctx = Context("7 rest")
    value = await ctx.read_float()
    assert value == 7
    assert isinstance(value, int)
    assert ctx.index == 2


@pytest.mark.asyncio
async def test_read_float_absent():
    ctx = Context(".x")
    assert await ctx.read_float() is None
    assert ctx.index == 0


@pytest.mark.asyncio
async def test_number_reads_agree_on_consumed_line_end():
    int_ctx = Context(";x")
    float_ctx = Context(";x")
    assert await int_ctx.read_int() is None
    assert await float_ctx.read_float() is None
    assert int_ctx.index == 1
    assert float_ctx.index == 1


@pytest.mark.asyncio
async def test_number_reads_agree_on_bare_minus_before_line_end():
    int_ctx = Context("-;x")
    float_ctx = Context("-;x")
    assert await int_ctx.read_int() is None
    assert await float_ctx.read_float() is None
    assert int_ctx.index == float_ctx.index == 2


# --- Strings ---

@pytest.mark.asyncio
async def test_read_string_word_leaves_space_for_whitespace_consumption():
    ctx = Context("hello world")
    assert await ctx.read_string(consume_whitespace=False) == "hello"
    assert ctx.index == 5
    ctx.consume_whitespace()
    assert await ctx.read_string() == "world"


@pytest.mark.asyncio
async def test_read_string_default_skips_trailing_spaces():
    ctx = Context("hello world")
    assert await ctx.read_string() == "hello"
    assert ctx.index == 6


@pytest.mark.asyncio
async def test_read_string_quoted():
    ctx = Context('"a b"')
    assert await ctx.read_string() == "a b"
    assert ctx.index == 5


@pytest.mark.asyncio
async def test_read_string_unterminated_quote_degrades():
    ctx = Context('"abc')
    assert await ctx.read_string() == "abc"
    assert ctx.index == 4


@pytest.mark.asyncio
async def test_read_string_escape():
    assert await Context("a\\ b").read_string() == "a b"
    assert await Context('"a\\"b"').read_string() == 'a"b'


@pytest.mark.asyncio
async def test_read_string_line_end():
    ctx = Context("abc;def")
    assert await ctx.read_string() == "abc"
    assert ctx.index == 4


@pytest.mark.asyncio
async def test_read_string_escaped_line_end_is_kept():
    assert await Context("a\\;b").read_string() == "a;b"


@pytest.mark.asyncio
async def test_read_string_line_end_disabled():
    assert await Context("abc;def").read_string(end_on_line_end=False) == "abc;def"


@pytest.mark.asyncio
async def test_read_string_custom_end_token_is_consumed():
    ctx = Context("x y} z")
    assert await ctx.read_string(end_token="}") == "x y"
    assert ctx.index == 5


@pytest.mark.asyncio
async def test_read_string_predicate_end_token():
    ctx = Context("abc123")
    assert await ctx.read_string(end_token=str.isdigit, consume_end_token=False) == "abc"
    assert ctx.index == 3


@pytest.mark.asyncio
async def test_read_string_interpolates_variables():
    ctx = Context('"value: $x!"', variables={"x": 42})
    assert await ctx.read_string() == "value: 42!"


@pytest.mark.asyncio
async def test_read_string_interpolates_substitution(registry):
    ctx = Context("a${return b}c", registry)
    assert await ctx.read_string() == "abc"


@pytest.mark.asyncio
async def test_read_string_empty_substitution(registry):
    ctx = Context("a${}b", registry)
    assert await ctx.read_string() == "ab"


# --- Variable names and units ---

@pytest.mark.asyncio
async def test_read_variable_name():
    ctx = Context("abc1 x")
    assert await ctx.read_variable_name() == "abc1"
    assert ctx.index == 4


@pytest.mark.asyncio
async def test_read_variable_name_does_not_substitute():
    ctx = Context("ab$c", variables={"c": 1})
    assert await ctx.read_variable_name() == "ab"
    assert ctx.index == 2


@pytest.mark.asyncio
async def test_read_variable_name_leaves_line_end():
    ctx = Context("x;")
    assert await ctx.read_variable_name() == "x"
    assert ctx.index == 1


@pytest.mark.asyncio
async def test_read_unit_variable():
    ctx = Context("$x", variables={"x": 5})
    assert await ctx.read_unit() == 5
    assert ctx.index == 2


@pytest.mark.asyncio
async def test_read_unit_unknown_variable():
    ctx = Context("a $y")
    ctx.consume(2)
    with pytest.raises(UnknownVariable) as exc:
        await ctx.read_unit()
    assert exc.value.index == 3
    assert exc.value.buffer == "a $y"
    assert 'Unknown variable "y"' in str(exc.value)


@pytest.mark.asyncio
async def test_read_unit_lone_dollar_is_literal():
    ctx = Context("$ a")
    assert await ctx.read_unit() == "$"
    assert ctx.index == 1


@pytest.mark.asyncio
async def test_read_unit_end_of_buffer():
    assert await Context("").read_unit() is None
