import pytest

from labdb.core.exceptions import IdFormatError, IdRangeError
from labdb.store.ids import ALPHABET, IdAllocator, scramble, unscramble


@pytest.mark.parametrize("n", [1, 2, 3, 63, 64, 4096, 123456789, 0x7FFFFFFF, 0xFFFFFFFE, 0xFFFFFFFF])
def test_scramble_is_invertible(n):
    token = scramble(n)

    assert len(token) == 6
    assert all(symbol in ALPHABET for symbol in token)
    assert unscramble(token) == n


def test_scramble_known_value():
    # 1 -> 0x21001 after the xorshift, i.e. base64 digits 0,0,0,33,0,1
    assert scramble(1) == "000X01"


def test_scramble_yields_distinct_tokens():
    tokens = {scramble(n) for n in range(1, 5001)}

    assert len(tokens) == 5000


@pytest.mark.parametrize("n", [0, -1, 0x100000000, True, 1.0])
def test_scramble_rejects_out_of_range(n):
    with pytest.raises(IdRangeError):
        scramble(n)


@pytest.mark.parametrize("token", ["", "abc", "abcdefg", "abc!de", "ab cde", "+00001"])
def test_unscramble_rejects_malformed_tokens(token):
    with pytest.raises(IdFormatError):
        unscramble(token)


def test_id_errors_are_value_errors():
    with pytest.raises(ValueError):
        unscramble("nope")


def test_allocator_is_monotonic_without_gaps():
    allocator = IdAllocator("$")

    ids = [allocator.allocate() for _ in range(3)]

    assert ids == ["$" + scramble(1), "$" + scramble(2), "$" + scramble(3)]
    assert allocator.max_numbered_id == 3


def test_allocator_recycles_gaps_before_advancing():
    allocator = IdAllocator("$")
    allocator.observe("$" + scramble(5))
    allocator.observe("$" + scramble(2))

    assert allocator.free_ranges == [(1, 1), (3, 4)]
    assert allocator.free_count == 3

    allocated = [unscramble(allocator.allocate()[1:]) for _ in range(4)]

    assert allocated == [4, 3, 1, 6]
    assert allocator.max_numbered_id == 6


def test_allocator_ignores_foreign_and_temporary_ids():
    allocator = IdAllocator("p-")
    allocator.observe(".tmp-photo")
    allocator.observe("$" + scramble(7))
    allocator.observe("p-not-a-token")
    allocator.observe("p-000000")

    assert allocator.max_numbered_id == 0
    assert allocator.free_ranges == []
    assert allocator.allocate() == "p-" + scramble(1)


def test_number_of():
    allocator = IdAllocator("n-")

    assert allocator.number_of("n-" + scramble(42)) == 42
    assert allocator.number_of("+" + scramble(42)) is None
    assert allocator.number_of("n-!!!!!!") is None


def test_hand_picked_high_id_keeps_the_pool_compact():
    allocator = IdAllocator("$")
    allocator.observe("$custom")

    assert allocator.max_numbered_id == unscramble("custom") == 1794096274
    assert allocator.free_ranges == [(1, 1794096273)]

    allocator.observe("$" + scramble(1000))
    assert allocator.free_ranges == [(1, 999), (1001, 1794096273)]

    assert allocator.allocate() == "$" + scramble(1794096273)
    assert allocator.free_count == 1794096271


def test_observing_every_number_empties_the_pool():
    allocator = IdAllocator("+")
    for n in (9, 3, 1, 2, 8, 4, 6, 5, 7):
        allocator.observe("+" + scramble(n))

    assert allocator.free_ranges == []
    assert allocator.allocate() == "+" + scramble(10)


def test_released_ids_are_handed_out_again():
    allocator = IdAllocator("n-")
    allocator.observe("n-" + scramble(5))
    allocator.observe("n-" + scramble(2))

    first = allocator.allocate()
    allocator.release(first)

    assert unscramble(first[2:]) == 4
    assert allocator.free_ranges == [(1, 1), (3, 4)]
    assert allocator.allocate() == first


def test_release_merges_neighbouring_ranges():
    allocator = IdAllocator("$")
    allocator.observe("$" + scramble(5))
    allocator.observe("$" + scramble(2))

    allocator.release("$" + scramble(2))
    allocator.release("$" + scramble(2))
    allocator.release("$" + scramble(9))
    allocator.release("+" + scramble(3))

    assert allocator.free_ranges == [(1, 4)]
