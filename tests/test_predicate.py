from quill.quill_predicate import to_predicate


def test_literal_becomes_equality_test():
    is_quote = to_predicate('"')
    assert is_quote('"') is True
    assert is_quote("'") is False
    assert is_quote(' ') is False


def test_literal_space():
    is_space = to_predicate(' ')
    assert is_space(' ')
    assert not is_space('')
    assert not is_space('  ')


def test_function_is_returned_unchanged():
    def never(_):
        return False
    assert to_predicate(never) is never

    check = str.isdigit
    assert to_predicate(check) is check
