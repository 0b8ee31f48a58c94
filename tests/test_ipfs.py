import pytest

from allocopt.errors import InvalidHashFormat
from allocopt.ipfs import is_valid_ipfshash, require_valid_ipfshashes, verify_ipfshashes

GOOD = "QmauYgPmss6CEZXtaRvvGW2oiyLqxpoCkWNCTmFPVTFDfk"
ALSO_GOOD = "QmhiYgPmss6CEZXtaRvvGW2oiyLqxpoCkWNCTmFPVTFDfk"


def test_accepts_well_formed_cidv0():
    assert is_valid_ipfshash(GOOD)
    assert verify_ipfshashes([GOOD, ALSO_GOOD])


def test_rejects_wrong_prefix():
    assert not is_valid_ipfshash("A" + GOOD[1:])
    assert not verify_ipfshashes([GOOD, "AmauYgPmss6CEZXtaRvvGW2oiyLqxpoCkWNCTmFPVTFDfk"])


def test_rejects_wrong_length():
    assert not is_valid_ipfshash(GOOD[:-1])
    assert not is_valid_ipfshash(GOOD + "a")


@pytest.mark.parametrize("char", ["0", "O", "I", "l", "_", " "])
def test_rejects_characters_outside_base58(char):
    assert not is_valid_ipfshash(GOOD[:-1] + char)


def test_rejects_empty_string_and_non_strings():
    assert not verify_ipfshashes([GOOD, ALSO_GOOD, ""])
    assert not is_valid_ipfshash(None)
    assert not is_valid_ipfshash(46)


def test_empty_collection_is_valid():
    assert verify_ipfshashes([])


def test_one_bad_entry_fails_every_list():
    with pytest.raises(InvalidHashFormat) as excinfo:
        require_valid_ipfshashes([GOOD], [], ["bad"], [ALSO_GOOD])
    assert excinfo.value.invalid == ["bad"]
    assert "bad" in str(excinfo.value)

    require_valid_ipfshashes([GOOD], [], [], [ALSO_GOOD])
