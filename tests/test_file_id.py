import base64

import pytest

from linkdrop.errors import FilenameTooLong, InvalidIdentifier
from linkdrop.files.file_id import (
    BASE62,
    ID_LENGTH,
    MAX_ID_LENGTH,
    decode_name,
    encode_name,
    generate,
    random_suffix,
    validate,
)


def test_encode_name_is_base32():
    assert encode_name("test_file.txt") == "ORSXG5C7MZUWYZJOOR4HI==="
    assert encode_name(b"test_file.txt") == "ORSXG5C7MZUWYZJOOR4HI==="


def test_base62_alphabet():
    assert len(BASE62) == 62
    assert len(set(BASE62)) == 62
    assert BASE62.isalnum()


def test_random_suffix():
    suffix = random_suffix()
    assert len(suffix) == ID_LENGTH
    assert all(c in BASE62 for c in suffix)
    assert len(random_suffix(8)) == 8


def test_generate_layout():
    file_id = generate("test_file.txt")
    assert file_id.startswith("ORSXG5C7MZUWYZJOOR4HI===")
    assert len(file_id) == len("ORSXG5C7MZUWYZJOOR4HI===") + ID_LENGTH
    assert all(c in BASE62 for c in file_id[-ID_LENGTH:])


@pytest.mark.parametrize(
    "name",
    [
        "test_file.txt",
        "../../../../etc/passwd",
        "..\\..\\windows\\system32",
        "a/\\b/some/.*file<.txt.zip",
        "nul\x00byte",
        "ünïcödé 文件.txt",
        "",
    ],
)
def test_generated_ids_validate(name):
    file_id = generate(name)
    assert validate(file_id) == file_id
    assert "/" not in file_id
    assert "\\" not in file_id
    assert "." not in file_id


@pytest.mark.parametrize(
    "raw",
    [
        b"test_file.txt",
        b"../../../../etc/passwd",
        b"a/\\b/some/.*file<.txt.zip",
        b"\x00\x01\xff\xfe",
        "ünïcödé 文件.txt".encode(),
        b"",
    ],
)
def test_decode_name_inverts_encoding(raw):
    assert decode_name(generate(raw)) == raw


def test_decode_name_rejects_garbage():
    assert decode_name("short") is None
    # lowercase is not base32
    assert decode_name("abcdefgh" + "A" * ID_LENGTH) is None
    # bad padding
    assert decode_name("ORSXG5C7=" + "A" * ID_LENGTH) is None


def test_validate_accepts_alphanumeric_and_padding():
    candidate = "Zz09==" + "a" * ID_LENGTH
    assert validate(candidate) == candidate
    assert validate("A" * ID_LENGTH) == "A" * ID_LENGTH


@pytest.mark.parametrize(
    "candidate",
    [
        "",
        "../../etc/passwd" + "A" * ID_LENGTH,
        "..\\..\\boot.ini" + "A" * ID_LENGTH,
        "abc/def" + "A" * ID_LENGTH,
        "abc\\def" + "A" * ID_LENGTH,
        "abc.def" + "A" * ID_LENGTH,
        "..",
        "abc\x00" + "A" * ID_LENGTH,
        "abc\r\n" + "A" * ID_LENGTH,
        "abc-_" + "A" * ID_LENGTH,
        "١٢٣" + "A" * ID_LENGTH,
        "A" * (ID_LENGTH - 1),
        "A" * (MAX_ID_LENGTH + 1),
    ],
)
def test_validate_rejects(candidate):
    assert validate(candidate) is None


def test_validate_custom_max_length():
    candidate = "A" * 40
    assert validate(candidate, max_length=40) == candidate
    assert validate(candidate, max_length=39) is None


def test_generate_rejects_long_filename():
    long_file_name = ", ".join(str(n) for n in range(100000))
    with pytest.raises(FilenameTooLong):
        generate(long_file_name)
    # FilenameTooLong is a kind of InvalidIdentifier
    with pytest.raises(InvalidIdentifier):
        generate("x" * 200)


def test_generate_max_length_boundary():
    # 135 bytes encode to exactly 216 base32 characters
    name = "x" * 135
    assert len(base64.b32encode(name.encode())) == 216
    assert len(generate(name, max_length=216 + ID_LENGTH)) == 216 + ID_LENGTH
    with pytest.raises(FilenameTooLong):
        generate(name, max_length=216 + ID_LENGTH - 1)


def test_suffixes_are_unique():
    suffixes = {generate("test_file.txt")[-ID_LENGTH:] for _ in range(10000)}
    assert len(suffixes) == 10000
